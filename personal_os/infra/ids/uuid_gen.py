from __future__ import annotations

from uuid import uuid4

from personal_os.domain.ports import IdGenerator


class UuidGenerator(IdGenerator):
    """Canonical 36-char UUID4 text, the form every id column stores."""

    def new_id(self) -> str:
        return str(uuid4())
