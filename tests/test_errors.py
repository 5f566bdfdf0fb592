from sqlalchemy.exc import DataError, IntegrityError

from app.core.errors import map_db_error


class PgError(Exception):
    def __init__(self, pgcode):
        super().__init__(f"pg error {pgcode}")
        self.pgcode = pgcode


class MySQLError(Exception):
    pass


def integrity(orig):
    return IntegrityError("INSERT ...", {}, orig)


def test_postgres_codes():
    assert map_db_error(integrity(PgError("23505"))) == (409, "Duplicate entry")
    assert map_db_error(integrity(PgError("23503"))) == (400, "Invalid reference")
    assert map_db_error(integrity(PgError("23502"))) == (400, "Missing required field")
    assert map_db_error(integrity(PgError("23514"))) == (400, "Value violates constraint")
    assert map_db_error(DataError("INSERT ...", {}, PgError("22P02"))) == (400, "Invalid data format")
    assert map_db_error(DataError("INSERT ...", {}, PgError("22001"))) == (400, "Data too long")


def test_mysql_errno():
    assert map_db_error(integrity(MySQLError(1062, "Duplicate entry 'x' for key 'email'"))) == (409, "Duplicate entry")
    assert map_db_error(integrity(MySQLError(1452, "Cannot add or update a child row"))) == (400, "Invalid reference")
    assert map_db_error(integrity(MySQLError(1048, "Column 'title' cannot be null"))) == (400, "Missing required field")
    assert map_db_error(integrity(MySQLError(3819, "Check constraint is violated"))) == (400, "Value violates constraint")


def test_sqlite_messages():
    assert map_db_error(integrity(Exception("UNIQUE constraint failed: users.email"))) == (409, "Duplicate entry")
    assert map_db_error(integrity(Exception("FOREIGN KEY constraint failed"))) == (400, "Invalid reference")
    assert map_db_error(integrity(Exception("NOT NULL constraint failed: projects.title"))) == (400, "Missing required field")
    assert map_db_error(integrity(Exception("CHECK constraint failed: ck_review_rating_range"))) == (400, "Value violates constraint")


def test_unknown_errors_are_not_mapped():
    assert map_db_error(RuntimeError("boom")) is None
