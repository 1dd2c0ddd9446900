from unittest import mock

import pytest

from makermusic.models import Attendance
from makermusic.store import upsert


def test_upsert_rejects_unsupported_dialect():
    session = mock.Mock()
    session.get_bind.return_value.dialect.name = "oracle"

    with pytest.raises(ValueError, match="oracle"):
        upsert(session, Attendance, {"schedule_id": 1}, {"status": "PRESENT"})
    session.execute.assert_not_called()
