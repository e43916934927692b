# htosc/streaming/sample_recorder.py
"""処理した姿勢サンプルを CSV に記録するモジュール。"""

import csv
from pathlib import Path
import time

import numpy as np

from htosc.orientation.quaternion import EulerAngles, Quaternion


# --- 定数
CSV_HEADERS = [
    "timestamp",
    "roll_deg", "pitch_deg", "yaw_deg",
    "quat_w", "quat_x", "quat_y", "quat_z",
]


class SampleRecorder:
    """タイムスタンプ・オイラー角（度）・クォータニオンを1行ずつ書き込む。

    クォータニオン列はデバイス座標系のまま記録し、``read_quaternion_csv`` でそのまま再生できる。
    オイラー角は座標系変換後のクォータニオンから求めた値。
    """

    def __init__(self, filename: str | Path) -> None:
        self.filename = Path(filename)
        self.filename.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.filename, "w", newline="", encoding="utf-8")
        self._writer = csv.writer(self._file)
        self._writer.writerow(CSV_HEADERS)
        self._start_time = time.perf_counter()
        self.count = 0


    def write(self, q_raw: Quaternion, angles: EulerAngles) -> None:
        t = time.perf_counter() - self._start_time
        roll, pitch, yaw = np.degrees([angles.roll, angles.pitch, angles.yaw])
        self._writer.writerow([
            f"{t:.4f}",
            f"{roll:.2f}", f"{pitch:.2f}", f"{yaw:.2f}",
            f"{q_raw.w:.6f}", f"{q_raw.x:.6f}", f"{q_raw.y:.6f}", f"{q_raw.z:.6f}",
        ])
        self.count += 1


    def close(self) -> None:
        if not self._file.closed:
            self._file.close()
