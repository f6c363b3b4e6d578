"""Credential model handed to the launcher."""

from pydantic import BaseModel, ConfigDict


class Credential(BaseModel):
    """An authenticated (or offline) player identity.

    Attributes:
        name: Display name passed to the game.
        uuid: Profile id without dashes.
        access_token: Token the game presents to session servers.
        xuid: Secondary user hash, empty when the account has none.
        user_type: ``msa`` for Microsoft accounts, ``legacy`` for offline play.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    uuid: str = ""
    access_token: str = ""
    xuid: str = ""
    user_type: str = "msa"
