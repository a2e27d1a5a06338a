from decimal import Decimal
from enum import Enum
from typing import Annotated, ClassVar, Dict, List, Optional

import pytest
from annotated_types import MaxLen
from pydantic import BaseModel, Field

from ddl_model import ForeignKeyAction, ModelRegistry, ProviderType
from ddl_model.reflection import parse_reference, unwrap_annotation


class Status(Enum):
    ACTIVE = "active"
    DISABLED = "disabled"


class User(BaseModel):
    __sql_table__: ClassVar[str] = "Users"
    __sql_schema__: ClassVar[str] = "app"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_serial_columns__: ClassVar[List[str]] = ["id"]
    __sql_foreign_keys__: ClassVar[Dict] = {
        "team_id": {"references": "app.Teams(id)", "on_delete": "CASCADE"}
    }
    __sql_indexes__: ClassVar[List] = [("ix_users_name", ["name DESC"])]
    __sql_unique__: ClassVar[List] = [["email"]]
    __sql_checks__: ClassVar[Dict[str, str]] = {"age": "age >= 0"}
    __sql_defaults__: ClassVar[Dict[str, str]] = {"age": "0"}
    __sql_columns__: ClassVar[Dict[str, Dict]] = {"email": {"is_unicode": True}}

    id: int
    team_id: Optional[int] = None
    email: Annotated[str, MaxLen(320)]
    name: Optional[str] = None
    age: int = 0
    balance: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    status: Status = Status.ACTIVE


class ActiveUsers(BaseModel):
    __sql_view__: ClassVar[str] = "ActiveUsers"
    __sql_view_definition__: ClassVar[str] = "SELECT id, email FROM Users WHERE status = 'active'"

    id: int
    email: str


def test_register_table_builds_columns_and_constraints():
    registry = ModelRegistry()

    table = registry.register_table(User)

    assert table.schema_name == "app"
    assert table.table_name == "Users"
    assert [c.column_name for c in table.columns] == [
        "id",
        "team_id",
        "email",
        "name",
        "age",
        "balance",
        "status",
    ]

    id_column = table.get_column("id")
    assert id_column.is_primary_key and id_column.is_auto_increment
    assert not id_column.is_nullable

    email = table.get_column("email")
    assert email.length == 320
    assert email.is_unicode
    assert email.is_unique
    assert not email.is_nullable

    balance = table.get_column("balance")
    assert (balance.precision, balance.scale) == (12, 2)

    assert table.get_column("status").host_type is Status
    assert table.get_column("name").is_nullable
    assert table.get_column("name").is_indexed

    assert table.primary_key_constraint.constraint_name == "pk_Users_id"
    fk = table.foreign_key_constraints[0]
    assert fk.constraint_name == "fk_Users_team_id_Teams_id"
    assert fk.on_delete == ForeignKeyAction.CASCADE
    assert table.get_column("team_id").referenced_table_name == "Teams"
    assert table.unique_constraints[0].constraint_name == "uc_Users_email"
    assert str(table.indexes[0].columns[0]) == "name DESC"
    assert table.check_constraints[0].render(ProviderType.SQLITE) == "age >= 0"
    assert table.default_constraints[0].constraint_name == "df_Users_age"


def test_registry_is_explicit_and_owned_by_caller():
    first = ModelRegistry()
    second = ModelRegistry()
    table = first.register_table(User)

    assert first.get_table(User) is table
    assert first.tables == [table]
    with pytest.raises(KeyError):
        second.get_table(User)


def test_register_view():
    registry = ModelRegistry()

    view = registry.register_view(ActiveUsers)

    assert view.view_name == "ActiveUsers"
    assert view.definition.startswith("SELECT")
    assert registry.views == [view]


def test_view_without_definition_is_rejected():
    class NoDefinition(BaseModel):
        id: int

    with pytest.raises(ValueError):
        ModelRegistry().register_view(NoDefinition)


def test_foreign_key_to_unknown_field_is_rejected():
    class Broken(BaseModel):
        __sql_foreign_keys__: ClassVar[Dict[str, str]] = {"missing": "Teams(id)"}

        id: int

    with pytest.raises(ValueError):
        ModelRegistry().register_table(Broken)


def test_parse_reference():
    assert parse_reference("app.Teams(id)") == ("app", "Teams", "id")
    assert parse_reference("Teams( id )") == (None, "Teams", "id")
    with pytest.raises(ValueError):
        parse_reference("Teams.id")


def test_unwrap_annotation():
    assert unwrap_annotation(Optional[int]) == (int, True)
    assert unwrap_annotation(int | None) == (int, True)
    assert unwrap_annotation(str) == (str, False)
