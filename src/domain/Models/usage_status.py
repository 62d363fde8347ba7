from dataclasses import dataclass, asdict


@dataclass(frozen=True)
class UsageStatus:
    """Estado de la cuota diaria de llamadas al proveedor."""
    remaining: int
    used: int
    quota: int

    def to_dict(self) -> dict:
        return asdict(self)
