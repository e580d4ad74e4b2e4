"""Tests for schema diff and DDL synthesis.

Covers CREATE TABLE for new tables, ALTER TABLE clause generation (column
add/rename/drop/placement, index drop and re-add, foreign key add/drop/modify,
table options, table rename), the "changed" synthesis policies, snapshot
validation and no-op rejection.
"""

import pytest

from mysql_designer.errors import ValidationError
from mysql_designer.schema.models import (
    ColumnDefinition,
    ForeignKeyDefinition,
    IndexDefinition,
    Snapshot,
    SynthesisPolicy,
    TableOptions,
)
from mysql_designer.schema.synthesizer import (
    NO_CHANGES_MESSAGE,
    synthesize,
    validate_snapshot,
)

CHANGED = SynthesisPolicy(
    column_strategy="changed", index_strategy="changed", options_strategy="changed"
)


def _loaded(name: str, type: str = "int(11)", **attrs) -> ColumnDefinition:
    """A column as the introspector returns it."""
    return ColumnDefinition(name=name, type=type, nullable=False, original_name=name, **attrs)


def _new(name: str, type: str = "varchar(255)", **attrs) -> ColumnDefinition:
    return ColumnDefinition(name=name, type=type, is_new=True, **attrs)


def _fk(name: str, column: str, **attrs) -> ForeignKeyDefinition:
    values = {"referenced_table": "users", "referenced_column": "id", "original_name": name}
    values.update(attrs)
    return ForeignKeyDefinition(name=name, column=column, **values)


def _snapshot(*columns: ColumnDefinition, **parts) -> Snapshot:
    return Snapshot(columns=columns, **parts)


def _alter(original: Snapshot, current: Snapshot, **kwargs) -> tuple[str, ...]:
    return synthesize("app", "t", original, current, False, **kwargs).clauses


# ============================================================================
# Test: CREATE TABLE
# ============================================================================


class TestCreateTable:
    """New tables produce a single CREATE TABLE statement."""

    def test_new_table_scenario(self) -> None:
        """id auto_increment primary key with InnoDB/utf8mb4 options."""
        current = Snapshot(
            columns=(
                ColumnDefinition(
                    name="id",
                    type="int(11)",
                    nullable=False,
                    key="primary",
                    extra="auto_increment",
                    is_new=True,
                ),
            ),
            indexes=(IndexDefinition(key_name="PRIMARY", column_name="id", kind="PRIMARY"),),
            options=TableOptions(
                engine="InnoDB", charset="utf8mb4", collation="utf8mb4_general_ci"
            ),
        )
        stmt = synthesize("app", "users", None, current, True)

        assert stmt.kind == "CREATE"
        assert stmt.sql == (
            "CREATE TABLE `app`.`users` (\n"
            "  `id` int(11) NOT NULL auto_increment,\n"
            "  PRIMARY KEY (`id`)\n"
            ") ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_general_ci"
        )
        assert str(stmt) == stmt.sql

    def test_primary_key_rendered_first(self) -> None:
        current = _snapshot(
            _new("id", "int(11)"),
            _new("email"),
            indexes=(
                IndexDefinition(key_name="uq_email", column_name="email", kind="UNIQUE"),
                IndexDefinition(key_name="PRIMARY", column_name="id", kind="PRIMARY"),
            ),
        )
        clauses = synthesize("app", "users", None, current, True).clauses
        assert clauses[2:] == ("PRIMARY KEY (`id`)", "UNIQUE KEY `uq_email` (`email`)")

    def test_columns_in_edited_order(self) -> None:
        current = _snapshot(_new("b"), _new("a"))
        clauses = synthesize("app", "t", None, current, True).clauses
        assert [clause.split()[0] for clause in clauses] == ["`b`", "`a`"]

    def test_foreign_keys_skip_deleted(self) -> None:
        current = _snapshot(
            _new("user_id", "int(11)"),
            foreign_keys=(
                _fk("fk_keep", "user_id", is_new=True, original_name=""),
                _fk("fk_gone", "user_id", is_new=True, is_deleted=True, original_name=""),
            ),
        )
        sql = synthesize("app", "orders", None, current, True).sql
        assert "CONSTRAINT `fk_keep` FOREIGN KEY (`user_id`)" in sql
        assert "fk_gone" not in sql

    def test_empty_options_fall_back_to_defaults(self) -> None:
        sql = synthesize("app", "t", None, _snapshot(_new("a")), True).sql
        assert sql.endswith(") ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_general_ci")

    def test_custom_create_defaults(self) -> None:
        defaults = TableOptions(engine="MyISAM", charset="latin1", collation="latin1_bin")
        sql = synthesize(
            "app", "t", None, _snapshot(_new("a")), True, create_defaults=defaults
        ).sql
        assert sql.endswith(") ENGINE=MyISAM DEFAULT CHARSET=latin1 COLLATE=latin1_bin")

    def test_comment_and_auto_increment_options(self) -> None:
        current = _snapshot(_new("a"), options=TableOptions(comment="Log", auto_increment=10))
        sql = synthesize("app", "t", None, current, True).sql
        assert sql.endswith("COLLATE=utf8mb4_general_ci COMMENT='Log' AUTO_INCREMENT=10")

    def test_new_table_name_used(self) -> None:
        stmt = synthesize("app", "", None, _snapshot(_new("a")), True, new_table_name="events")
        assert stmt.table == "events"
        assert stmt.sql.startswith("CREATE TABLE `app`.`events` (")

    def test_no_columns_rejected(self) -> None:
        with pytest.raises(ValidationError, match="No columns defined"):
            synthesize("app", "t", None, Snapshot(), True)


# ============================================================================
# Test: No-op Rejection
# ============================================================================


class TestNoChanges:
    """Unchanged sessions never produce a statement."""

    def test_identical_snapshots_rejected(self) -> None:
        original = _snapshot(_loaded("a"), _loaded("b"))
        with pytest.raises(ValidationError, match=NO_CHANGES_MESSAGE):
            synthesize("app", "t", original, original, False)

    def test_equal_copy_rejected(self) -> None:
        original = _snapshot(_loaded("a"), options=TableOptions(engine="InnoDB"))
        current = original.model_copy()
        with pytest.raises(ValidationError, match=NO_CHANGES_MESSAGE):
            synthesize("app", "t", original, current, False)

    def test_same_rename_target_is_no_change(self) -> None:
        original = _snapshot(_loaded("a"))
        with pytest.raises(ValidationError, match=NO_CHANGES_MESSAGE):
            synthesize("app", "t", original, original, False, new_table_name="t")

    def test_changed_policy_with_nothing_rendered_rejected(self) -> None:
        """An edit that renders identically leaves no clause under "changed"."""
        original = _snapshot(_loaded("a", key="primary"))
        current = _snapshot(_loaded("a", key="none"))
        with pytest.raises(ValidationError, match=NO_CHANGES_MESSAGE):
            synthesize("app", "t", original, current, False, policy=CHANGED)

    def test_missing_original_rejected(self) -> None:
        with pytest.raises(ValidationError):
            synthesize("app", "t", None, _snapshot(_loaded("a")), False)


# ============================================================================
# Test: ALTER TABLE Columns
# ============================================================================


class TestAlterColumns:
    """Column add, rename, modify, drop and placement."""

    def test_statement_shape(self) -> None:
        original = _snapshot(_loaded("a"), _loaded("b"))
        current = _snapshot(_loaded("a"))
        stmt = synthesize("app", "t", original, current, False)
        assert stmt.kind == "ALTER"
        assert stmt.sql == (
            "ALTER TABLE `app`.`t`\n"
            "  MODIFY COLUMN `a` int(11) NOT NULL,\n"
            "  DROP COLUMN `b`"
        )

    def test_rename_emits_change_not_add_and_drop(self) -> None:
        original = _snapshot(_loaded("a"), _loaded("b"))
        current = _snapshot(_loaded("a").model_copy(update={"name": "a2"}), _loaded("b"))
        clauses = _alter(original, current)

        assert clauses[0] == "CHANGE COLUMN `a` `a2` int(11) NOT NULL"
        assert not any(clause.startswith("DROP COLUMN `a`") for clause in clauses)
        assert not any(clause.startswith("ADD COLUMN `a2`") for clause in clauses)

    def test_drop_detected_once(self) -> None:
        original = _snapshot(_loaded("a"), _loaded("b"))
        current = _snapshot(_loaded("a"))
        clauses = _alter(original, current)
        assert clauses.count("DROP COLUMN `b`") == 1

    def test_unchanged_columns_modified_by_default(self) -> None:
        original = _snapshot(_loaded("a"), _loaded("b"))
        current = _snapshot(_loaded("a"), _loaded("b"), _new("c"))
        clauses = _alter(original, current)
        assert "MODIFY COLUMN `a` int(11) NOT NULL" in clauses
        assert "MODIFY COLUMN `b` int(11) NOT NULL" in clauses

    def test_trailing_new_column_has_no_placement(self) -> None:
        original = _snapshot(_loaded("a"))
        current = _snapshot(_loaded("a"), _new("c"))
        clauses = _alter(original, current, policy=CHANGED)
        assert clauses == ("ADD COLUMN `c` varchar(255) NULL DEFAULT NULL",)

    def test_new_column_first(self) -> None:
        original = _snapshot(_loaded("a"))
        current = _snapshot(_new("c"), _loaded("a"))
        clauses = _alter(original, current, policy=CHANGED)
        assert clauses == ("ADD COLUMN `c` varchar(255) NULL DEFAULT NULL FIRST",)

    def test_new_column_in_middle(self) -> None:
        original = _snapshot(_loaded("a"), _loaded("b"))
        current = _snapshot(_loaded("a"), _new("c"), _loaded("b"))
        clauses = _alter(original, current, policy=CHANGED)
        assert clauses == ("ADD COLUMN `c` varchar(255) NULL DEFAULT NULL AFTER `a`",)

    def test_consecutive_new_columns_chain(self) -> None:
        original = _snapshot(_loaded("a"), _loaded("b"))
        current = _snapshot(_loaded("a"), _new("x"), _new("y"), _loaded("b"))
        clauses = _alter(original, current, policy=CHANGED)
        assert clauses == (
            "ADD COLUMN `x` varchar(255) NULL DEFAULT NULL AFTER `a`",
            "ADD COLUMN `y` varchar(255) NULL DEFAULT NULL AFTER `x`",
        )

    def test_moved_to_front(self) -> None:
        original = _snapshot(_loaded("a"), _loaded("b"), _loaded("c"))
        current = _snapshot(_loaded("c"), _loaded("a"), _loaded("b"))
        clauses = _alter(original, current, policy=CHANGED)
        assert clauses == ("MODIFY COLUMN `c` int(11) NOT NULL FIRST",)

    def test_moved_down(self) -> None:
        original = _snapshot(_loaded("a"), _loaded("b"), _loaded("c"))
        current = _snapshot(_loaded("a"), _loaded("c"), _loaded("b"))
        clauses = _alter(original, current, policy=CHANGED)
        assert clauses == ("MODIFY COLUMN `b` int(11) NOT NULL AFTER `c`",)

    def test_renamed_and_moved(self) -> None:
        original = _snapshot(_loaded("a"), _loaded("b"), _loaded("c"))
        current = _snapshot(
            _loaded("c").model_copy(update={"name": "c2"}), _loaded("a"), _loaded("b")
        )
        clauses = _alter(original, current, policy=CHANGED)
        assert clauses == ("CHANGE COLUMN `c` `c2` int(11) NOT NULL FIRST",)

    def test_changed_type_modified(self) -> None:
        original = _snapshot(_loaded("a"), _loaded("b"))
        current = _snapshot(_loaded("a", type="bigint(20)"), _loaded("b"))
        clauses = _alter(original, current, policy=CHANGED)
        assert clauses == ("MODIFY COLUMN `a` bigint(20) NOT NULL",)

    def test_cleared_original_name_never_drops_same_name(self) -> None:
        """A column without original_name is added, but its namesake is kept."""
        original = _snapshot(_loaded("id"), _loaded("email", type="varchar(255)"))
        current = _snapshot(
            _loaded("id"), ColumnDefinition(name="email", type="varchar(320)", nullable=False)
        )
        clauses = _alter(original, current)

        assert "ADD COLUMN `email` varchar(320) NOT NULL" in clauses
        assert not any(clause.startswith("DROP COLUMN") for clause in clauses)

    def test_readded_column_never_drops_same_name(self) -> None:
        original = _snapshot(_loaded("id"), _loaded("email", type="varchar(255)"))
        current = _snapshot(_loaded("id"), _new("email"))
        clauses = _alter(original, current)

        assert clauses == (
            "ADD COLUMN `email` varchar(255) NULL DEFAULT NULL",
            "MODIFY COLUMN `id` int(11) NOT NULL",
        )

    def test_adds_before_modifies_before_drops(self) -> None:
        original = _snapshot(_loaded("a"), _loaded("b"))
        current = _snapshot(_loaded("a"), _new("c"))
        clauses = _alter(original, current)
        assert [clause.split()[0] for clause in clauses] == ["ADD", "MODIFY", "DROP"]

    def test_double_claim_rejected(self) -> None:
        original = _snapshot(_loaded("a"))
        current = _snapshot(
            _loaded("a"), _loaded("a").model_copy(update={"name": "a_copy"})
        )
        with pytest.raises(ValidationError, match="more than one column"):
            _alter(original, current)


# ============================================================================
# Test: ALTER TABLE Indexes
# ============================================================================


class TestAlterIndexes:
    """Index drop and re-add."""

    def _original(self) -> Snapshot:
        return _snapshot(
            _loaded("id", extra="auto_increment"),
            _loaded("email", type="varchar(255)"),
            indexes=(
                IndexDefinition(key_name="PRIMARY", column_name="id", kind="PRIMARY"),
                IndexDefinition(key_name="idx_email", column_name="email"),
            ),
        )

    def test_recreate_drops_and_readds_everything(self) -> None:
        original = self._original()
        current = original.model_copy(update={"columns": original.columns + (_new("note"),)})
        clauses = _alter(original, current)
        assert clauses[-4:] == (
            "DROP PRIMARY KEY",
            "DROP INDEX `idx_email`",
            "ADD PRIMARY KEY (`id`)",
            "ADD KEY `idx_email` (`email`) USING BTREE",
        )

    def test_recreate_removed_index_only_dropped(self) -> None:
        original = self._original()
        current = original.model_copy(update={"indexes": original.indexes[:1]})
        clauses = _alter(original, current)
        assert "DROP INDEX `idx_email`" in clauses
        assert not any("ADD KEY `idx_email`" in clause for clause in clauses)

    def test_changed_policy_touches_only_changed_index(self) -> None:
        original = self._original()
        current = original.model_copy(
            update={
                "indexes": (
                    original.indexes[0],
                    IndexDefinition(key_name="idx_email", column_name="email", kind="UNIQUE"),
                )
            }
        )
        clauses = _alter(original, current, policy=CHANGED)
        assert clauses == (
            "DROP INDEX `idx_email`",
            "ADD UNIQUE KEY `idx_email` (`email`)",
        )

    def test_changed_policy_new_index_only_added(self) -> None:
        original = self._original()
        current = original.model_copy(
            update={
                "indexes": original.indexes
                + (IndexDefinition(key_name="idx_id", column_name="id", method="HASH"),)
            }
        )
        clauses = _alter(original, current, policy=CHANGED)
        assert clauses == ("ADD KEY `idx_id` (`id`) USING HASH",)

    def test_changed_policy_removed_index_dropped(self) -> None:
        original = self._original()
        current = original.model_copy(update={"indexes": original.indexes[:1]})
        assert _alter(original, current, policy=CHANGED) == ("DROP INDEX `idx_email`",)


# ============================================================================
# Test: ALTER TABLE Foreign Keys
# ============================================================================


class TestAlterForeignKeys:
    """Foreign key drop, add and modify."""

    def _original(self) -> Snapshot:
        return _snapshot(_loaded("user_id"), foreign_keys=(_fk("fk_user", "user_id"),))

    def test_modify_emits_adjacent_drop_and_add(self) -> None:
        original = self._original()
        changed = original.foreign_keys[0].model_copy(update={"on_delete": "CASCADE"})
        current = original.model_copy(update={"foreign_keys": (changed,)})
        clauses = _alter(original, current, policy=CHANGED)

        assert clauses.count("DROP FOREIGN KEY `fk_user`") == 1
        adds = [clause for clause in clauses if clause.startswith("ADD CONSTRAINT")]
        assert adds == [
            "ADD CONSTRAINT `fk_user` FOREIGN KEY (`user_id`) REFERENCES `users` (`id`) "
            "ON UPDATE RESTRICT ON DELETE CASCADE"
        ]
        drop_at = clauses.index("DROP FOREIGN KEY `fk_user`")
        assert clauses[drop_at + 1] == adds[0]

    def test_renamed_constraint_drops_old_name(self) -> None:
        original = self._original()
        renamed = original.foreign_keys[0].model_copy(update={"name": "fk_owner"})
        current = original.model_copy(update={"foreign_keys": (renamed,)})
        clauses = _alter(original, current, policy=CHANGED)
        assert clauses[0] == "DROP FOREIGN KEY `fk_user`"
        assert clauses[1].startswith("ADD CONSTRAINT `fk_owner`")

    def test_deleted_constraint_dropped(self) -> None:
        original = self._original()
        deleted = original.foreign_keys[0].model_copy(update={"is_deleted": True})
        current = original.model_copy(update={"foreign_keys": (deleted,)})
        assert _alter(original, current, policy=CHANGED) == ("DROP FOREIGN KEY `fk_user`",)

    def test_constraint_missing_from_current_dropped(self) -> None:
        original = self._original()
        current = original.model_copy(update={"foreign_keys": ()})
        assert _alter(original, current, policy=CHANGED) == ("DROP FOREIGN KEY `fk_user`",)

    def test_new_constraint_added(self) -> None:
        original = self._original()
        added = _fk(
            "fk_team", "user_id", referenced_table="teams", is_new=True, original_name=""
        )
        current = original.model_copy(update={"foreign_keys": original.foreign_keys + (added,)})
        assert _alter(original, current, policy=CHANGED) == (
            "ADD CONSTRAINT `fk_team` FOREIGN KEY (`user_id`) REFERENCES `teams` (`id`) "
            "ON UPDATE RESTRICT ON DELETE RESTRICT",
        )

    def test_new_then_deleted_constraint_ignored(self) -> None:
        original = self._original()
        ghost = _fk("fk_tmp", "user_id", is_new=True, is_deleted=True, original_name="")
        current = original.model_copy(
            update={
                "foreign_keys": original.foreign_keys + (ghost,),
                "columns": original.columns + (_new("note"),),
            }
        )
        clauses = _alter(original, current, policy=CHANGED)
        assert not any("fk_tmp" in clause for clause in clauses)

    def test_drops_then_adds_then_modifies(self) -> None:
        original = _snapshot(
            _loaded("a"),
            _loaded("b"),
            foreign_keys=(_fk("fk_a", "a"), _fk("fk_b", "b")),
        )
        current = original.model_copy(
            update={
                "foreign_keys": (
                    original.foreign_keys[0].model_copy(update={"on_update": "CASCADE"}),
                    original.foreign_keys[1].model_copy(update={"is_deleted": True}),
                    _fk("fk_c", "b", is_new=True, original_name=""),
                )
            }
        )
        clauses = _alter(original, current, policy=CHANGED)
        assert [clause[:20] for clause in clauses] == [
            "DROP FOREIGN KEY `fk",
            "ADD CONSTRAINT `fk_c",
            "DROP FOREIGN KEY `fk",
            "ADD CONSTRAINT `fk_a",
        ]
        assert clauses[0] == "DROP FOREIGN KEY `fk_b`"
        assert clauses[2] == "DROP FOREIGN KEY `fk_a`"


# ============================================================================
# Test: ALTER TABLE Options and Rename
# ============================================================================


class TestAlterOptionsAndRename:
    """Table option restatement and RENAME TO."""

    def _original(self) -> Snapshot:
        return _snapshot(
            _loaded("a"),
            options=TableOptions(
                engine="InnoDB",
                charset="utf8mb4",
                collation="utf8mb4_general_ci",
                comment="old",
            ),
        )

    def test_options_always_restated(self) -> None:
        original = self._original()
        current = original.model_copy(update={"columns": original.columns + (_new("b"),)})
        clauses = _alter(original, current)
        assert clauses[-1] == (
            "ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_general_ci COMMENT='old'"
        )

    def test_changed_options_only(self) -> None:
        original = self._original()
        current = original.model_copy(
            update={"options": original.options.model_copy(update={"comment": "new"})}
        )
        assert _alter(original, current, policy=CHANGED) == ("COMMENT='new'",)

    def test_cleared_comment_stated(self) -> None:
        original = self._original()
        current = original.model_copy(
            update={"options": original.options.model_copy(update={"comment": ""})}
        )
        assert _alter(original, current, policy=CHANGED) == ("COMMENT=''",)

    def test_rename_table(self) -> None:
        original = self._original()
        stmt = synthesize("app", "t", original, original, False, new_table_name="t2", policy=CHANGED)
        assert stmt.sql == "ALTER TABLE `app`.`t`\n  RENAME TO `app`.`t2`"

    def test_rename_is_last_clause(self) -> None:
        original = self._original()
        current = original.model_copy(update={"columns": original.columns + (_new("b"),)})
        clauses = _alter(original, current, new_table_name="t2")
        assert clauses[-1] == "RENAME TO `app`.`t2`"
        assert clauses[-2].startswith("ENGINE=InnoDB")


# ============================================================================
# Test: validate_snapshot()
# ============================================================================


class TestValidateSnapshot:
    """Invalid snapshots never reach the database."""

    def test_valid_snapshot_passes(self) -> None:
        snap = _snapshot(
            _loaded("id", extra="auto_increment"),
            indexes=(IndexDefinition(key_name="PRIMARY", column_name="id", kind="PRIMARY"),),
        )
        validate_snapshot(snap, "t")

    def test_table_name_required(self) -> None:
        with pytest.raises(ValidationError, match="Table name is required"):
            validate_snapshot(_snapshot(_loaded("a")), "  ")

    def test_column_name_required(self) -> None:
        with pytest.raises(ValidationError, match="Column name is required"):
            validate_snapshot(_snapshot(_new("")), "t")

    def test_duplicate_column(self) -> None:
        with pytest.raises(ValidationError, match="Duplicate column name 'a'"):
            validate_snapshot(_snapshot(_loaded("a"), _new("a")), "t")

    def test_auto_increment_must_be_indexed(self) -> None:
        snap = _snapshot(_loaded("id", extra="auto_increment"))
        with pytest.raises(ValidationError, match="must be part of a key"):
            validate_snapshot(snap, "t")

    def test_single_auto_increment(self) -> None:
        snap = _snapshot(
            _loaded("a", extra="auto_increment"),
            _loaded("b", extra="auto_increment"),
            indexes=(
                IndexDefinition(key_name="PRIMARY", column_name="a", kind="PRIMARY"),
                IndexDefinition(key_name="idx_b", column_name="b"),
            ),
        )
        with pytest.raises(ValidationError, match="Only one auto_increment"):
            validate_snapshot(snap, "t")

    def test_index_unknown_column(self) -> None:
        snap = _snapshot(_loaded("a"), indexes=(IndexDefinition(key_name="idx", column_name="z"),))
        with pytest.raises(ValidationError, match="unknown column 'z'"):
            validate_snapshot(snap, "t")

    def test_primary_name_requires_primary_kind(self) -> None:
        snap = _snapshot(
            _loaded("a"), indexes=(IndexDefinition(key_name="PRIMARY", column_name="a"),)
        )
        with pytest.raises(ValidationError, match="PRIMARY"):
            validate_snapshot(snap, "t")

    def test_primary_kind_requires_primary_name(self) -> None:
        snap = _snapshot(
            _loaded("a"),
            indexes=(IndexDefinition(key_name="pk", column_name="a", kind="PRIMARY"),),
        )
        with pytest.raises(ValidationError):
            validate_snapshot(snap, "t")

    def test_index_name_required(self) -> None:
        snap = _snapshot(_loaded("a"), indexes=(IndexDefinition(key_name="", column_name="a"),))
        with pytest.raises(ValidationError, match="no key name"):
            validate_snapshot(snap, "t")

    def test_foreign_key_unknown_column(self) -> None:
        snap = _snapshot(_loaded("a"), foreign_keys=(_fk("fk", "missing"),))
        with pytest.raises(ValidationError, match="unknown column 'missing'"):
            validate_snapshot(snap, "t")

    def test_foreign_key_needs_referenced_column(self) -> None:
        snap = _snapshot(_loaded("a"), foreign_keys=(_fk("fk", "a", referenced_column=""),))
        with pytest.raises(ValidationError, match="no referenced column"):
            validate_snapshot(snap, "t")

    def test_deleted_foreign_key_not_checked(self) -> None:
        snap = _snapshot(_loaded("a"), foreign_keys=(_fk("fk", "gone", is_deleted=True),))
        validate_snapshot(snap, "t")

    def test_invalid_alter_raises_before_rendering(self) -> None:
        original = _snapshot(_loaded("a"))
        current = _snapshot(_loaded("a"), _new("a"))
        with pytest.raises(ValidationError, match="Duplicate column name"):
            synthesize("app", "t", original, current, False)
