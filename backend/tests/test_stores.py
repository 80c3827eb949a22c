"""
Unit tests per gli store SQL di conti e camere, con sessione mock.
"""

import datetime
import uuid
from unittest.mock import MagicMock

from sqlalchemy.dialects import postgresql

from hotel_pms.services.folio_store import SQLFolioStore
from hotel_pms.services.stay_store import SQLRoomStore


UPDATED_AT = datetime.datetime(2024, 1, 2, 11, 0, tzinfo=datetime.timezone.utc)


def _executed(mock_db):
    return mock_db.execute.await_args.args[0].compile(dialect=postgresql.dialect())


class TestFolioStore:

    async def test_find_partial_skips_closed_stays(self, mock_db):
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        mock_db.execute.return_value = result

        folio = await SQLFolioStore().find_partial(mock_db, uuid.uuid4())

        assert folio is None
        compiled = _executed(mock_db)
        sql = str(compiled)
        assert "LEFT OUTER JOIN stays" in sql
        assert "folios.stay_id IS NULL OR stays.status !=" in sql
        assert "checked_out" in compiled.params.values()


class TestRoomStore:

    async def test_set_status_stamps_given_time(self, mock_db):
        room_id = uuid.uuid4()

        await SQLRoomStore().set_status(mock_db, room_id, "cleaning", UPDATED_AT)

        params = _executed(mock_db).params
        assert params["status"] == "cleaning"
        assert params["updated_at"] == UPDATED_AT
