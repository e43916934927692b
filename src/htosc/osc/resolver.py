# htosc/osc/resolver.py

import numpy as np

from htosc.orientation.quaternion import EulerAngles, Quaternion
from htosc.osc.template import Token


def _to_float32(value: float) -> float:
    """OSC の ``f`` 型に合わせて単精度に丸める。"""
    return float(np.float32(value))


def resolve_token(token: Token, q: Quaternion, angles: EulerAngles) -> float:
    """トークン1つ分の送信値を計算する。

    ``q`` は座標系変換後のクォータニオンを渡すこと。角度は度に変換し、
    ``+`` 付きトークンは負の値に 360 を足して 0〜360° にする。符号反転は最後に適用する。
    """
    kind = token.kind
    if kind.is_angle:
        value = _to_float32(np.degrees(getattr(angles, kind.component)))
        if kind.is_wrapped and value < 0:
            value = _to_float32(value + 360.0)
    else:
        value = _to_float32(q.component(kind.component))

    return -value if token.negate else value
