# htosc/orientation/quaternion.py
"""頭部姿勢クォータニオンの座標系変換とオイラー角（Tait-Bryan）への変換。"""

from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np


# --- 定数
COMPONENTS = ("w", "x", "y", "z")

# デバイス座標系（x: 右, y: 上, z: 後方）→ Ambisonic 座標系（x: 前, y: 左, z: 上）
# {変換元成分: (変換先成分, 符号)}
AMBISONIC_AXIS_MAP: Mapping[str, tuple[str, int]] = {
    "w": ("w", 1),
    "z": ("x", -1),
    "x": ("y", -1),
    "y": ("z", 1),
}

GIMBAL_LOCK_EPSILON = 1e-6  # |sin(pitch)| がこれ以上 1 に近ければジンバルロック扱い


@dataclass(frozen=True)
class Quaternion:
    """姿勢を表すクォータニオン w + xi + yj + zk（正規化はしない）。"""

    w: float
    x: float
    y: float
    z: float

    @staticmethod
    def identity() -> "Quaternion":
        return Quaternion(1.0, 0.0, 0.0, 0.0)

    def as_array(self) -> np.ndarray:
        """[w, x, y, z] の float64 配列を返す。"""
        return np.array([self.w, self.x, self.y, self.z], dtype=np.float64)

    def component(self, name: str) -> float:
        """成分名（"w", "x", "y", "z"）から値を返す。"""
        if name not in COMPONENTS:
            raise ValueError(f"不明なクォータニオン成分: {name}")
        return getattr(self, name)


@dataclass(frozen=True)
class EulerAngles:
    """Tait-Bryan 角（ラジアン）。"""

    yaw: float    # z軸（上）まわり
    pitch: float  # y軸（左右）まわり
    roll: float   # x軸（前後）まわり


def _check_axis_map(axis_map: Mapping[str, tuple[str, int]]) -> None:
    """軸マップが成分の置換かつ符号 ±1 であることを確認する。"""
    if set(axis_map.keys()) != set(COMPONENTS):
        raise ValueError(f"軸マップの変換元が不正です: {sorted(axis_map.keys())}")
    targets = [target for target, _ in axis_map.values()]
    if sorted(targets) != sorted(COMPONENTS):
        raise ValueError(f"軸マップの変換先が置換になっていません: {targets}")
    for source, (_, sign) in axis_map.items():
        if sign not in (1, -1):
            raise ValueError(f"軸マップの符号が不正です: {source} -> {sign}")


def remap(
    q: Quaternion,
    axis_map: Mapping[str, tuple[str, int]] = AMBISONIC_AXIS_MAP,
) -> Quaternion:
    """成分の入れ替えと符号反転だけでクォータニオンの座標系を変換する。

    正規化やクリップは行わない。

    パラメータ
    ----------
    q : Quaternion
        デバイス座標系のクォータニオン。
    axis_map : Mapping[str, tuple[str, int]], optional
        ``{変換元成分: (変換先成分, 符号)}`` の対応表。

    戻り値
    ------
    Quaternion
        変換先座標系のクォータニオン。
    """
    _check_axis_map(axis_map)
    values: dict[str, float] = {}
    for source, (target, sign) in axis_map.items():
        values[target] = sign * q.component(source)
    return Quaternion(values["w"], values["x"], values["y"], values["z"])


def _wrap_pi(angle: float) -> float:
    """角度を (-π, π] に正規化する。"""
    wrapped = float(np.arctan2(np.sin(angle), np.cos(angle)))
    if wrapped <= -np.pi:
        wrapped += 2.0 * np.pi
    return wrapped


def to_tait_bryan(q: Quaternion) -> EulerAngles:
    """クォータニオンを ZYX 順の Tait-Bryan 角（yaw, pitch, roll）に変換する。

    pitch が ±90° のジンバルロック時は roll を 0 とし、回転をすべて yaw に割り当てる。
    """
    w, x, y, z = q.w, q.x, q.y, q.z

    # --- pitch（y軸）: 丸め誤差で NaN にならないようクリップ
    sinp = float(np.clip(2.0 * (w * y - z * x), -1.0, 1.0))

    if abs(sinp) >= 1.0 - GIMBAL_LOCK_EPSILON:
        # --- ジンバルロック
        pitch = float(np.copysign(np.pi / 2.0, sinp))
        roll = 0.0
        yaw = -2.0 * float(np.sign(sinp)) * float(np.arctan2(x, w))
    else:
        pitch = float(np.arcsin(sinp))
        # --- roll（x軸）
        roll = float(np.arctan2(2.0 * (w * x + y * z), 1.0 - 2.0 * (x * x + y * y)))
        # --- yaw（z軸）
        yaw = float(np.arctan2(2.0 * (w * z + x * y), 1.0 - 2.0 * (y * y + z * z)))

    return EulerAngles(yaw=_wrap_pi(yaw), pitch=_wrap_pi(pitch), roll=_wrap_pi(roll))
