from __future__ import annotations

from shopbot.container import Container, container


def get_container() -> Container:
    return container
