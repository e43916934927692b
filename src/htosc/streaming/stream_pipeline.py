# htosc/streaming/stream_pipeline.py
"""姿勢サンプル1件を OSC メッセージにして送信するパイプライン（Qt 非依存）。"""

from dataclasses import dataclass, replace
import logging
import threading

from htosc.orientation.quaternion import Quaternion, remap, to_tait_bryan
from htosc.osc.message import OutgoingMessage, build_message
from htosc.osc.osc_sender import OscSender, TransportError
from htosc.osc.template import DEFAULT_PATTERN, Template, TemplateError, parse_template
from htosc.streaming.sample_recorder import SampleRecorder


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamerConfig:
    """送信先とテンプレート文字列。変更時は値ごと差し替える。"""

    host: str = "localhost"
    port: int = 3001
    pattern: str = DEFAULT_PATTERN


@dataclass(frozen=True)
class _StreamerState:
    config: StreamerConfig
    template: Template | None
    error: TemplateError | None


@dataclass(frozen=True)
class ValidityChange:
    """テンプレートの有効性が変化したことを表す。"""

    valid: bool
    message: str


@dataclass(frozen=True)
class SampleResult:
    """1サンプル分の処理結果。"""

    message: OutgoingMessage | None = None
    send_error: TransportError | None = None


def _compile(config: StreamerConfig) -> _StreamerState:
    """設定からテンプレートを解析し、スナップショットを作る。"""
    try:
        return _StreamerState(config, parse_template(config.pattern), None)
    except TemplateError as e:
        return _StreamerState(config, None, e)


def _validity_change(previous: _StreamerState, state: _StreamerState) -> ValidityChange | None:
    previous_text = str(previous.error) if previous.error else ""
    text = str(state.error) if state.error else ""
    if (previous.error is None) == (state.error is None) and previous_text == text:
        return None
    return ValidityChange(state.error is None, text)


class StreamPipeline:
    """設定スナップショットを保持し、サンプルごとの処理を行うクラス。

    スナップショットは不変オブジェクトで、変更時は参照ごと差し替える。
    処理中のサンプルは開始時に取得したスナップショットを最後まで使う。
    どのスレッドからでも呼び出せる。
    """

    def __init__(
        self,
        config: StreamerConfig | None = None,
        sender: OscSender | None = None,
    ) -> None:
        # --- 送信担当
        self._sender: OscSender = sender if sender is not None else OscSender()

        # --- 設定とテンプレートのスナップショット
        self._state: _StreamerState = _compile(config or StreamerConfig())
        if self._state.error is not None:
            logger.warning("テンプレートが不正です: %s", self._state.error)

        # --- 書き込み側の排他制御用ロック
        self._lock = threading.Lock()

        # --- 統計
        self.sent_count: int = 0
        self.failed_count: int = 0
        self.skipped_count: int = 0

        # --- 記録
        self._recorder: SampleRecorder | None = None


    def _replace(self, **changes) -> ValidityChange | None:
        """現在の設定に ``changes`` を適用する。読み取りから差し替えまでロック内で行う。"""
        with self._lock:
            previous = self._state
            config = replace(previous.config, **changes)
            if config.pattern == previous.config.pattern:
                state = _StreamerState(config, previous.template, previous.error)
            else:
                state = _compile(config)
            self._state = state
            change = _validity_change(previous, state)

        if change is not None:
            if change.valid:
                logger.info("テンプレートを更新しました: %s", state.template)
            else:
                logger.warning("テンプレートが不正です: %s", state.error)
        return change


    def set_config(self, config: StreamerConfig) -> ValidityChange | None:
        """設定を差し替える。テンプレートが変わった場合のみ再解析する。"""
        return self._replace(host=config.host, port=config.port, pattern=config.pattern)


    def set_pattern(self, pattern: str) -> ValidityChange | None:
        return self._replace(pattern=pattern)


    def set_destination(self, host: str, port: int) -> ValidityChange | None:
        return self._replace(host=host, port=port)


    @property
    def config(self) -> StreamerConfig:
        return self._state.config


    @property
    def template(self) -> Template | None:
        return self._state.template


    @property
    def template_error(self) -> TemplateError | None:
        return self._state.error


    def process_sample(self, q_raw: Quaternion) -> SampleResult:
        """座標変換 → オイラー角 → メッセージ生成 → 送信 を行う。

        テンプレートが不正な場合はメッセージを生成しない。送信失敗は結果に含めて返し、
        例外は送出しない。
        """
        # --- スナップショットは1サンプルの間ずっと同じものを使う
        state = self._state

        q = remap(q_raw)
        angles = to_tait_bryan(q)

        recorder = self._recorder
        if recorder is not None:
            recorder.write(q_raw, angles)

        if state.template is None:
            self.skipped_count += 1
            return SampleResult()

        message = build_message(state.template, q, angles)
        config = state.config
        try:
            self._sender.send(message, config.host, config.port)
        except TransportError as e:
            self.failed_count += 1
            logger.warning("OSC送信失敗: %s", e)
            return SampleResult(message, e)
        self.sent_count += 1
        return SampleResult(message)


    def start_recording(self, recorder: SampleRecorder) -> None:
        self.stop_recording()
        self._recorder = recorder


    def stop_recording(self) -> SampleRecorder | None:
        recorder, self._recorder = self._recorder, None
        if recorder is not None:
            recorder.close()
        return recorder


    def close(self) -> None:
        """記録を終了し、送信クライアントを破棄する。"""
        self.stop_recording()
        self._sender.close()
