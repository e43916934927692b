# htosc/streaming/orientation_streamer.py
"""``StreamPipeline`` を Qt のシグナル/スロットで扱うためのラッパー。"""

from pathlib import Path
import logging

from PySide6.QtCore import QObject, Qt, Signal, Slot

from htosc.orientation.quaternion import Quaternion
from htosc.osc.message import OutgoingMessage
from htosc.osc.osc_sender import OscSender
from htosc.osc.template import Template, TemplateError
from htosc.streaming.sample_recorder import SampleRecorder
from htosc.streaming.stream_pipeline import StreamerConfig, StreamPipeline, ValidityChange


logger = logging.getLogger(__name__)


class OrientationStreamer(QObject):
    """姿勢クォータニオンを受け取り、テンプレートに従って OSC 送信するクラス。

    設定変更とサンプル処理は所属スレッドで行い、シグナルもそのスレッドからのみ発行する。
    他スレッドからの変更は ``request_pattern`` / ``request_destination`` を使うこと。
    """

    # --- シグナル
    template_validity_changed = Signal(bool, str)  # 有効フラグ, 診断メッセージ
    message_ready = Signal(object)  # 組み立てた OutgoingMessage
    send_failed = Signal(str)  # 送信エラーメッセージ

    # --- 他スレッドからの設定変更要求（所属スレッドへキューイングされる）
    pattern_change_requested = Signal(str)
    destination_change_requested = Signal(str, int)


    def __init__(
        self,
        config: StreamerConfig | None = None,
        sender: OscSender | None = None,
    ) -> None:
        """ストリーマーを生成する。

        パラメータ
        ----------
        config : StreamerConfig | None, optional
            初期設定。省略時は既定値。
        sender : OscSender | None, optional
            送信を担当するオブジェクト。省略時は新規に生成する。
        """
        super().__init__()

        self._pipeline = StreamPipeline(config, sender)

        self.pattern_change_requested.connect(self.set_pattern, Qt.ConnectionType.QueuedConnection)
        self.destination_change_requested.connect(self.set_destination, Qt.ConnectionType.QueuedConnection)


    def _notify(self, change: ValidityChange | None) -> None:
        if change is not None:
            self.template_validity_changed.emit(change.valid, change.message)


    def set_config(self, config: StreamerConfig) -> None:
        """設定を差し替える。"""
        self._notify(self._pipeline.set_config(config))


    @Slot(str)
    def set_pattern(self, pattern: str) -> None:
        """テンプレート文字列を変更する。"""
        self._notify(self._pipeline.set_pattern(pattern))


    @Slot(str, int)
    def set_destination(self, host: str, port: int) -> None:
        """送信先を変更する。"""
        self._notify(self._pipeline.set_destination(host, port))


    def request_pattern(self, pattern: str) -> None:
        """任意のスレッドからテンプレート変更を要求する。"""
        self.pattern_change_requested.emit(pattern)


    def request_destination(self, host: str, port: int) -> None:
        """任意のスレッドから送信先変更を要求する。"""
        self.destination_change_requested.emit(host, port)


    @property
    def pipeline(self) -> StreamPipeline:
        return self._pipeline


    @property
    def config(self) -> StreamerConfig:
        """現在の設定。"""
        return self._pipeline.config


    @property
    def template(self) -> Template | None:
        """現在の解析済みテンプレート（不正な場合は ``None``）。"""
        return self._pipeline.template


    @property
    def template_error(self) -> TemplateError | None:
        """テンプレートが不正な場合の理由。"""
        return self._pipeline.template_error


    @property
    def template_valid(self) -> bool:
        return self._pipeline.template_error is None


    @property
    def sent_count(self) -> int:
        return self._pipeline.sent_count


    @property
    def failed_count(self) -> int:
        return self._pipeline.failed_count


    @property
    def skipped_count(self) -> int:
        return self._pipeline.skipped_count


    def process_sample(self, q_raw: Quaternion) -> OutgoingMessage | None:
        """1サンプル分の処理を行い、結果をシグナルで通知する。

        テンプレートが不正な場合は ``None`` を返す。送信に失敗してもメッセージは返す。
        """
        result = self._pipeline.process_sample(q_raw)
        if result.message is not None:
            self.message_ready.emit(result.message)
        if result.send_error is not None:
            self.send_failed.emit(str(result.send_error))
        return result.message


    @Slot(object)
    def on_quaternion(self, q_raw: Quaternion) -> None:
        """姿勢ソースのシグナル接続用スロット。"""
        self.process_sample(q_raw)


    def start_recording(self, filename: str | Path) -> None:
        """処理したサンプルの CSV 記録を開始する。"""
        self._pipeline.start_recording(SampleRecorder(filename))
        logger.info("サンプル記録を開始: %s", filename)


    def stop_recording(self) -> None:
        """CSV 記録を終了する。"""
        recorder = self._pipeline.stop_recording()
        if recorder is not None:
            logger.info("サンプル記録を終了: %d 件", recorder.count)


    def shutdown(self) -> None:
        """記録を終了し、送信クライアントを破棄する。"""
        self.stop_recording()
        self._pipeline.close()
