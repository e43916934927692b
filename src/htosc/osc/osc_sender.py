# htosc/osc/osc_sender.py

import threading

from pythonosc.osc_message_builder import BuildError
from pythonosc.udp_client import SimpleUDPClient

from htosc.osc.message import OutgoingMessage


# OSCパケットのエンコードとUDP送信は python-osc に任せる。
# 引数はすべて float（型タグ ``f``）として送信される。
# 宛先は送信ごとに指定し、同じ宛先が続く間はクライアントを使い回す。

MAX_PORT = 65535


class TransportError(RuntimeError):
    """OSCメッセージの送信に失敗したことを表す例外。"""

    def __init__(self, message: str, host: str, port: int) -> None:
        super().__init__(message)
        self.host = host
        self.port = port


class OscSender:

    def __init__(self) -> None:
        self._client: SimpleUDPClient | None = None
        self._destination: tuple[str, int] | None = None
        self._lock = threading.Lock()


    def _client_for(self, host: str, port: int) -> SimpleUDPClient:
        """宛先に対応するクライアントを返す。宛先が変わった場合は作り直す。"""
        if not 0 <= port <= MAX_PORT:
            raise TransportError(f"ポート番号が範囲外です: {port}", host, port)
        if self._client is None or self._destination != (host, port):
            try:
                self._client = SimpleUDPClient(host, port)
            except (OSError, ValueError, OverflowError) as e:
                self._client = None
                self._destination = None
                raise TransportError(f"宛先 {host}:{port} を開けませんでした: {e}", host, port) from e
            self._destination = (host, port)
        return self._client


    def send(self, message: OutgoingMessage, host: str, port: int) -> None:
        """メッセージを ``host:port`` へ送信する。失敗時は ``TransportError`` を送出する。"""
        with self._lock:
            client = self._client_for(host, port)
            try:
                client.send_message(message.address, list(message.values))
            except (OSError, ValueError, BuildError) as e:
                raise TransportError(f"{host}:{port} への送信に失敗しました: {e}", host, port) from e


    @property
    def destination(self) -> tuple[str, int] | None:
        """現在クライアントを保持している宛先。"""
        return self._destination


    def close(self) -> None:
        """保持しているクライアントを破棄する。"""
        with self._lock:
            self._client = None
            self._destination = None
