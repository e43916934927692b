# htosc/__main__.py

import argparse
import logging
import signal
import sys

from PySide6.QtCore import QCoreApplication, QTimer

from htosc.config.settings import OscSettings, load_settings, save_settings
from htosc.devices.orientation_source import DEFAULT_RATE_HZ, CsvReplaySource
from htosc.osc.template import validate_pattern
from htosc.streaming.orientation_streamer import OrientationStreamer


logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="htosc",
        description="頭部姿勢クォータニオンをテンプレートに従って OSC で送信する。",
    )
    parser.add_argument("--host", help="送信先ホスト名またはIPアドレス")
    parser.add_argument("--port", type=int, help="送信先ポート番号")
    parser.add_argument("--pattern", help='メッセージテンプレート（例: "/SceneRotator/ypr yaw pitch roll"）')
    parser.add_argument("--replay", metavar="FILE", help="再生する姿勢ログ CSV")
    parser.add_argument("--rate", type=float, default=DEFAULT_RATE_HZ, help="再生レート (Hz)")
    parser.add_argument("--loop", action="store_true", help="再生を繰り返す")
    parser.add_argument("--record", metavar="FILE", help="処理したサンプルを CSV に記録する")
    parser.add_argument("--save-settings", action="store_true", help="指定した設定を保存する")
    parser.add_argument("--log-level", default="INFO", help="ログレベル")
    return parser


def _resolve_settings(args: argparse.Namespace) -> OscSettings:
    """保存済み設定にコマンドライン引数を上書きする。"""
    settings = load_settings()
    if args.host is not None:
        settings.ip = args.host
    if args.port is not None:
        settings.port = args.port
    if args.pattern is not None:
        settings.osc_protocol = args.pattern
    return settings


def main(argv: list[str] | None = None) -> int:
    """htosc を起動するエントリーポイント。"""
    args = _build_parser().parse_args(argv)

    # --- ログ設定
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = _resolve_settings(args)
    if args.save_settings:
        save_settings(settings)

    # --- テンプレート検証（不正でも起動は続け、送信をスキップする）
    error = validate_pattern(settings.osc_protocol)
    if error is not None:
        print(f"テンプレートが不正です: {error}", file=sys.stderr)

    if args.replay is None:
        logger.info("再生ファイルが指定されていないため終了します")
        return 0 if error is None else 1

    # --- QCoreApplicationの初期化
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])

    streamer = OrientationStreamer(settings.to_config())
    if args.record:
        streamer.start_recording(args.record)

    source = CsvReplaySource(args.replay, rate_hz=args.rate, loop=args.loop)
    source.quaternion_ready.connect(streamer.on_quaternion)
    source.error.connect(lambda msg: logger.error("姿勢ソースエラー: %s", msg))
    source.finished.connect(app.quit)

    # --- Ctrl+C で終了できるよう、定期的に Python 側へ制御を戻す
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    timer = QTimer()
    timer.start(200)
    timer.timeout.connect(lambda: None)

    logger.info(
        "送信開始: %s:%d %s", settings.ip, settings.port, settings.osc_protocol
    )
    source.start()
    try:
        app.exec()
    finally:
        source.stop()
        source.wait()
        streamer.shutdown()

    logger.info(
        "送信終了: 送信 %d 件, 失敗 %d 件, スキップ %d 件",
        streamer.sent_count,
        streamer.failed_count,
        streamer.skipped_count,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
