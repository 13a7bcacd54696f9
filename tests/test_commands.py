import pytest

from app.flow.commands import (
    LinkAccept,
    LinkReject,
    MaintenanceDone,
    MaintenanceNotDone,
    MoveoutBuilding,
    MoveoutDays,
    MoveoutFloor,
    MoveoutRoom,
    PayBack,
    PayBuilding,
    PayFloor,
    PayRoom,
    TenantMoveoutDate,
    UnknownCommand,
    parse_postback,
)


@pytest.mark.parametrize(
    "data, expected",
    [
        ("PAY_BUILDING=bld1", PayBuilding("bld1")),
        ("PAY_FLOOR=bld1:3", PayFloor("bld1", 3)),
        ("PAY_ROOM=room101", PayRoom("room101")),
        ("PAY_BACK=BUILDINGS", PayBack("BUILDINGS")),
        ("PAY_BACK=FLOORS:bld1", PayBack("FLOORS", "bld1")),
        ("MO_BUILDING=bld1", MoveoutBuilding("bld1")),
        ("MO_FLOOR=bld1:2", MoveoutFloor("bld1", 2)),
        ("MO_ROOM=room201", MoveoutRoom("room201")),
        ("LINK_ACCEPT=room101:tenant1", LinkAccept("room101", "tenant1")),
        ("LINK_REJECT=room101", LinkReject("room101")),
        ("MAINT_DONE=m1", MaintenanceDone("m1")),
        ("MAINT_NOT_DONE=m1", MaintenanceNotDone("m1")),
        ("MOVEOUT_DAYS=14", MoveoutDays(14)),
    ],
)
def test_parse_known_commands(data, expected):
    assert parse_postback(data) == expected


def test_moveout_days_defaults_to_seven():
    assert parse_postback("MOVEOUT_DAYS") == MoveoutDays(7)
    assert parse_postback("MOVEOUT_DAYS=") == MoveoutDays(7)


def test_date_picker_value_comes_from_params():
    command = parse_postback("TENANT_MOVEOUT_DATE", {"date": "2024-06-30"})
    assert command == TenantMoveoutDate("2024-06-30")
    assert parse_postback("TENANT_MOVEOUT_DATE") == TenantMoveoutDate(None)


@pytest.mark.parametrize(
    "data",
    [
        None,
        "",
        "SOMETHING_ELSE=1",
        "PAY_FLOOR=bld1",
        "PAY_FLOOR=bld1:three",
        "PAY_ROOM=",
        "PAY_BACK=FLOORS",
        "LINK_ACCEPT=room101",
        "MOVEOUT_DAYS=abc",
        "MOVEOUT_DAYS=0",
    ],
)
def test_malformed_data_is_unknown(data):
    assert isinstance(parse_postback(data), UnknownCommand)
