"""
Pydantic models for API responses.

The JSON field names match the persisted ledger document (camelCase) so the
game client and the dashboard read the same shape.  Python attributes stay
snake_case; FastAPI serializes response models by alias.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from tavern_dashboard.ledger.models import Ledger, PlayerRecord


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlayerResponse(_CamelModel):
    """
    One patron's status card.

    Attributes:
        username: Display name as written by the game client
        username_key: Lowercase lookup key
        current_title: Title shown next to the name
        titles: Every title the patron has earned
        gold, health, drunkenness, honour, quests_completed: Stats
        inventory: Item names in ledger order
    """

    username: str
    username_key: str
    current_title: str
    titles: list[str]
    gold: int
    health: int
    drunkenness: int
    honour: int
    quests_completed: int
    inventory: list[str]

    @classmethod
    def from_record(cls, record: PlayerRecord) -> "PlayerResponse":
        return cls.model_validate(record.to_dict())


class LedgerResponse(_CamelModel):
    """The whole canonical ledger."""

    last_updated: str
    players: list[PlayerResponse]

    @classmethod
    def from_ledger(cls, ledger: Ledger) -> "LedgerResponse":
        return cls(
            last_updated=ledger.last_updated,
            players=[PlayerResponse.from_record(p) for p in ledger.players],
        )


class UploadResponse(_CamelModel):
    """
    Result of a ledger upload.

    Attributes:
        success: Always True (failures are HTTP errors)
        players: Number of player records persisted
        last_updated: The timestamp stored with the ledger
        defaulted_fields: How many fields were defaulted during normalization
    """

    success: bool
    players: int
    last_updated: str
    defaulted_fields: int = 0


class HealthResponse(BaseModel):
    """Liveness payload."""

    status: str
    version: str
    ledger_source: str
