# htosc/devices/orientation_source.py

import csv
import logging
import threading
from pathlib import Path
import time

from PySide6.QtCore import (
    QThread,
    Signal,
    Slot,
)

from htosc.orientation.quaternion import Quaternion


logger = logging.getLogger(__name__)


# --- 定数
DEFAULT_RATE_HZ = 60.0  # 再生レートの既定値
QUATERNION_COLUMNS = ("quat_w", "quat_x", "quat_y", "quat_z")


def read_quaternion_csv(filename: str | Path) -> list[Quaternion]:
    """頭部トラッキングログ CSV からクォータニオン列を読み込む。

    パラメータ
    ----------
    filename : str | Path
        ``quat_w, quat_x, quat_y, quat_z`` 列を含む CSV ファイル。

    戻り値
    ------
    list[Quaternion]
        読み込んだクォータニオン。数値に変換できない行は読み飛ばす。
    """
    samples: list[Quaternion] = []
    with open(filename, "r", newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        missing = [c for c in QUATERNION_COLUMNS if c not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"必要な列がありません: {', '.join(missing)}")

        for line_no, row in enumerate(reader, start=2):
            try:
                w, x, y, z = (float(row[c]) for c in QUATERNION_COLUMNS)
            except (TypeError, ValueError):
                logger.warning("%s:%d 行目を読み飛ばします", filename, line_no)
                continue
            samples.append(Quaternion(w, x, y, z))
    return samples


class CsvReplaySource(QThread):
    """記録済み CSV のクォータニオンを一定レートで送出するスレッド。"""

    # --- シグナル
    error = Signal(str)  # エラーメッセージを通知
    quaternion_ready = Signal(object)  # サンプル取得時に通知


    def __init__(
        self,
        filename: str | Path,
        rate_hz: float = DEFAULT_RATE_HZ,
        loop: bool = False,
    ) -> None:
        """再生するファイルとレートを指定してスレッドを初期化する。"""
        super().__init__()

        if rate_hz <= 0:
            raise ValueError(f"再生レートは正の値で指定してください: {rate_hz}")

        # --- 引数保持
        self._filename = Path(filename)
        self._rate_hz: float = rate_hz
        self._loop: bool = loop
        self._emitted_count: int = 0
        self._stop_requested = threading.Event()


    @property
    def emitted_count(self) -> int:
        """これまでに送出したサンプル数。"""
        return self._emitted_count


    def run(self) -> None:
        """スレッド開始時に実行される再生ループ。"""
        try:
            samples = read_quaternion_csv(self._filename)
        except (OSError, ValueError) as e:
            self.error.emit(f"再生ファイルを読み込めませんでした: {e}")
            return

        if not samples:
            self.error.emit(f"再生できるサンプルがありません: {self._filename}")
            return

        # --- 再生ループ
        interval = 1.0 / self._rate_hz  # 1サンプルの理想間隔（秒）
        next_sample_time = time.perf_counter()
        while not self._should_stop():
            for q in samples:
                if self._should_stop():
                    return
                now = time.perf_counter()
                if now < next_sample_time:
                    time.sleep(next_sample_time - now)
                next_sample_time += interval

                self._emitted_count += 1
                self.quaternion_ready.emit(q)

            if not self._loop:
                break


    def _should_stop(self) -> bool:
        # 未起動のまま run() を直接呼んだ場合 requestInterruption() は無視される
        return self._stop_requested.is_set() or self.isInterruptionRequested()


    @Slot()
    def stop(self) -> None:
        """再生ループの終了をリクエストする。"""
        self._stop_requested.set()
        self.requestInterruption()
