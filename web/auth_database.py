"""Account storage for the authentication system."""

import logging
from typing import TypedDict

from tournaments.store import ObjectStore

logger = logging.getLogger(__name__)


class AccountData(TypedDict):
    """Type definition for account data."""

    id: str
    email: str
    name: str
    role: str
    password_hash: str


class AccountStore:
    """Keeps login accounts in the store's ``accounts`` collection."""

    def __init__(self, store: ObjectStore):
        self.store = store

    def email_exists(self, email: str) -> bool:
        return self.get_by_email(email) is not None

    def create_account(
        self, email: str, password_hash: str, name: str, role: str
    ) -> str:
        """
        Create a new account.

        Returns:
            ID of the created account, used as the profile's user id
        """
        account_id = self.store.create(
            "accounts",
            {
                "email": email.lower(),
                "name": name,
                "role": role,
                "password_hash": password_hash,
            },
        )
        logger.info(f"Created account {account_id} for {email}")
        return account_id

    def get_by_email(self, email: str) -> AccountData | None:
        accounts = self.store.query("accounts", email=email.lower())
        if not accounts:
            return None
        return AccountData(
            id=accounts[0]["id"],
            email=accounts[0]["email"],
            name=accounts[0]["name"],
            role=accounts[0]["role"],
            password_hash=accounts[0]["password_hash"],
        )

    def delete_account(self, account_id: str) -> bool:
        return self.store.delete("accounts", account_id)
