"""
Profile Repository.

Data access layer for the `profiles` table, one row per registered user.
"""

from notevault.clients.row_store import RowStore


class ProfileRepository:
    table = "profiles"

    def __init__(self, store: RowStore) -> None:
        self.store = store

    async def create(self, user_id: str, full_name: str, university: str) -> None:
        await self.store.insert(
            self.table,
            [{
                "id": user_id,
                "full_name": full_name,
                "university": university,
                "is_admin": False,
            }],
        )
