"""Combatant and stat data models for the tactics core."""

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from config import DEFAULT_STATS


def _require_non_negative(what: str, amount: int) -> None:
    if amount < 0:
        raise ValueError(f"{what} cannot be negative (got {amount})")


class Stats(BaseModel):
    """Combat statistics. Accepts the short keys (str, def, spd, ...) as aliases."""
    model_config = ConfigDict(populate_by_name=True)

    hp: int = Field(DEFAULT_STATS["hp"], ge=0)
    max_hp: int = Field(DEFAULT_STATS["maxhp"], ge=0, alias="maxhp")
    mp: int = Field(DEFAULT_STATS["mp"], ge=0)
    max_mp: int = Field(DEFAULT_STATS["maxmp"], ge=0, alias="maxmp")
    strength: int = Field(DEFAULT_STATS["str"], ge=0, alias="str")          # Physical attack
    defense: int = Field(DEFAULT_STATS["def"], ge=0, alias="def")           # Physical defense
    magic_strength: int = Field(DEFAULT_STATS["mstr"], ge=0, alias="mstr")
    magic_defense: int = Field(DEFAULT_STATS["mdef"], ge=0, alias="mdef")
    speed: int = Field(DEFAULT_STATS["spd"], ge=1, alias="spd")            # Drives initiative
    move: int = Field(DEFAULT_STATS["mv"], ge=0, alias="mv")               # Cells per move
    attack_range: int = Field(DEFAULT_STATS["range"], ge=0, alias="range")

    @model_validator(mode="after")
    def clamp_pools(self) -> "Stats":
        self.hp = min(self.hp, self.max_hp)
        self.mp = min(self.mp, self.max_mp)
        return self


class Combatant(BaseModel):
    """A unit on the battlefield, player-controlled or AI-controlled."""
    id: str                         # Unique identifier
    name: str
    is_enemy: bool = False          # Enemies are driven by the AI
    position: tuple[int, int]       # Grid cell (x, y)
    stats: Stats = Field(default_factory=Stats)
    wait_time: float = Field(0.0, ge=0)  # Initiative countdown
    has_acted: bool = False

    @computed_field
    @property
    def is_alive(self) -> bool:
        return self.stats.hp > 0

    def take_damage(self, damage: int) -> bool:
        """Reduce hp, never below zero.

        Args:
            damage: Amount of damage to take.

        Returns:
            True if the combatant died from this hit.

        Raises:
            ValueError: If damage is negative.
        """
        _require_non_negative("damage", damage)
        self.stats.hp = max(0, self.stats.hp - damage)
        return self.stats.hp <= 0

    def heal(self, amount: int) -> None:
        """Restore hp, capped at max_hp."""
        _require_non_negative("heal amount", amount)
        self.stats.hp = min(self.stats.max_hp, self.stats.hp + amount)

    def consume_mp(self, amount: int) -> bool:
        """Spend mp if enough is available. Returns False (and spends nothing) otherwise."""
        _require_non_negative("mp cost", amount)
        if self.stats.mp >= amount:
            self.stats.mp -= amount
            return True
        return False

    def restore_mp(self, amount: int) -> None:
        """Restore mp, capped at max_mp."""
        _require_non_negative("mp amount", amount)
        self.stats.mp = min(self.stats.max_mp, self.stats.mp + amount)

    def set_stats(self, **changes: int) -> None:
        """Overwrite stats by field name or short alias.

        The stats are rebuilt and validated as a whole, so bounds are checked
        and hp/mp are re-clamped. Nothing changes if validation fails.

        Raises:
            ValueError: If a stat name is unknown or a value is out of bounds.
        """
        fields = Stats.model_fields
        aliases = {info.alias: name for name, info in fields.items() if info.alias}
        resolved = {}
        for key, value in changes.items():
            name = aliases.get(key, key)
            if name not in fields:
                raise ValueError(f"Unknown stat '{key}'")
            resolved[name] = value
        self.stats = Stats.model_validate({**self.stats.model_dump(), **resolved})

    def status_info(self) -> dict:
        """Summary used by status panels."""
        s = self.stats
        return {
            "type": "enemy" if self.is_enemy else "ally",
            "hp": f"{s.hp}/{s.max_hp}",
            "mp": f"{s.mp}/{s.max_mp}",
            "str": s.strength,
            "def": s.defense,
            "mstr": s.magic_strength,
            "mdef": s.magic_defense,
            "spd": s.speed,
            "mv": s.move,
            "range": s.attack_range,
        }
