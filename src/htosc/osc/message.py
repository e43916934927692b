# htosc/osc/message.py

from dataclasses import dataclass

from htosc.orientation.quaternion import EulerAngles, Quaternion
from htosc.osc.resolver import resolve_token
from htosc.osc.template import Template


@dataclass(frozen=True)
class OutgoingMessage:
    """送信用に組み立てたOSCメッセージ（アドレス + float 引数列）。"""

    address: str
    values: tuple[float, ...] = ()


def build_message(template: Template, q: Quaternion, angles: EulerAngles) -> OutgoingMessage:
    """テンプレートの全トークンを順に評価してメッセージを組み立てる。"""
    values = tuple(resolve_token(token, q, angles) for token in template.tokens)
    return OutgoingMessage(template.address, values)
