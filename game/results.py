from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class Outcome:
    """Result of a player action that can fail for game-rule reasons."""
    success: bool
    message: str = ''
    extra: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self):
        return self.success

    @classmethod
    def ok(cls, message: str = '', **extra) -> 'Outcome':
        return cls(True, message, extra)

    @classmethod
    def fail(cls, message: str, **extra) -> 'Outcome':
        return cls(False, message, extra)

    def to_dict(self) -> Dict[str, Any]:
        data = {'success': self.success, 'message': self.message}
        data.update(self.extra)
        return data
