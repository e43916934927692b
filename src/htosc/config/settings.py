# htosc/config/settings.py
"""OSC送信設定（宛先・ポート・テンプレート）の保存と読み込み。"""

from dataclasses import asdict, dataclass
from filelock import FileLock, Timeout
import json
import logging
from pathlib import Path
import sys

from htosc.osc.osc_sender import MAX_PORT
from htosc.osc.template import DEFAULT_PATTERN
from htosc.streaming.stream_pipeline import StreamerConfig


logger = logging.getLogger(__name__)


# --- 定数
SETTINGS_FILENAME = "osc_settings.json"
LOCK_TIMEOUT_SEC = 10.0


def _get_data_dir() -> Path:
    """exe化・インストール環境にも対応した data/ ディレクトリ取得（作成はしない）"""
    # exeの場合はexeと同じ場所/data/
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent / "data"
    # ソースチェックアウトではリポジトリ直下/data/
    repo_dir = Path(__file__).resolve().parents[3]
    if (repo_dir / "pyproject.toml").exists():
        return repo_dir / "data"
    # インストール済みの場合はホームディレクトリ
    return Path.home() / ".htosc"


def settings_file_path() -> Path:
    """設定ファイルのパスを返す。"""
    return _get_data_dir() / SETTINGS_FILENAME


@dataclass
class OscSettings:
    ip: str = "localhost"
    port: int = 3001
    osc_protocol: str = DEFAULT_PATTERN

    def to_config(self) -> StreamerConfig:
        return StreamerConfig(self.ip, self.port, self.osc_protocol)

    @staticmethod
    def from_config(config: StreamerConfig) -> "OscSettings":
        return OscSettings(config.host, config.port, config.pattern)


def _settings_from_dict(data: dict) -> OscSettings:
    """JSONの内容から設定を作る。不正な値は既定値に戻す。"""
    settings = OscSettings()

    ip = data.get("ip")
    if isinstance(ip, str) and ip:
        settings.ip = ip

    port = data.get("port")
    if isinstance(port, int) and not isinstance(port, bool) and 0 <= port <= MAX_PORT:
        settings.port = port
    elif port is not None:
        logger.error("設定ファイルのポート番号が不正です: %r", port)

    osc_protocol = data.get("osc_protocol")
    if isinstance(osc_protocol, str):
        settings.osc_protocol = osc_protocol
    return settings


def load_settings(filename: str | Path | None = None) -> OscSettings:
    """設定ファイルを読み込む（ファイルロック付き）。

    ファイルが無い、または読み込めない場合は既定値を返す。
    """
    path = Path(filename) if filename is not None else settings_file_path()
    if not path.exists():
        return OscSettings()

    lock_path = str(path) + ".lock"
    try:
        with FileLock(lock_path, timeout=LOCK_TIMEOUT_SEC):
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
    except Timeout:
        logger.error("OSC設定読み込み時にロック獲得失敗: %s", path)
        return OscSettings()
    except (OSError, ValueError) as e:
        logger.error("OSC設定読み込み失敗: %s", e)
        return OscSettings()

    if not isinstance(data, dict):
        logger.error("OSC設定ファイルの形式が不正です: %s", path)
        return OscSettings()
    return _settings_from_dict(data)


def save_settings(settings: OscSettings, filename: str | Path | None = None) -> bool:
    """設定をファイルへ保存する（ファイルロック付き）。成功したら ``True`` を返す。"""
    path = Path(filename) if filename is not None else settings_file_path()
    lock_path = str(path) + ".lock"
    tmp_path = Path(str(path) + ".tmp")
    try:
        # --- 保存先ディレクトリは保存時にのみ作成する
        path.parent.mkdir(parents=True, exist_ok=True)
        with FileLock(lock_path, timeout=LOCK_TIMEOUT_SEC):
            try:
                # 一時ファイル書き込み + アトミックrename
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(asdict(settings), f, ensure_ascii=False, indent=2)
                tmp_path.replace(path)
            finally:
                tmp_path.unlink(missing_ok=True)
    except Timeout:
        logger.error("OSC設定保存時にロック獲得失敗: %s", path)
        return False
    except OSError as e:
        logger.error("OSC設定保存失敗: %s", e)
        return False
    return True
