"""SQLite layer for rides, driver profiles, ratings and vehicle verifications.

The matching path only reads. Insert helpers exist for seeding fixtures.
"""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from campusride.core.schemas import RideOffer, RideStatus

_PROFILES_TABLE = """
CREATE TABLE IF NOT EXISTS profiles (
    id                          TEXT PRIMARY KEY,
    full_name                   TEXT,
    avatar_url                  TEXT,
    gender                      TEXT,
    passenger_gender_preference TEXT NOT NULL DEFAULT 'no_preference',
    driver_gender_preference    TEXT NOT NULL DEFAULT 'no_preference'
);
"""

_RIDES_TABLE = """
CREATE TABLE IF NOT EXISTS rides (
    id              TEXT PRIMARY KEY,
    driver_id       TEXT    NOT NULL,
    from_location   TEXT    NOT NULL DEFAULT '',
    to_location     TEXT    NOT NULL DEFAULT '',
    from_lat        REAL,
    from_lng        REAL,
    to_lat          REAL,
    to_lng          REAL,
    scheduled_time  TEXT,
    available_seats INTEGER NOT NULL DEFAULT 0,
    price_per_seat  REAL,
    ride_status     TEXT    NOT NULL DEFAULT 'scheduled',
    is_activated    INTEGER NOT NULL DEFAULT 0,
    created_at      TEXT    NOT NULL
);
"""

_RATINGS_TABLE = """
CREATE TABLE IF NOT EXISTS driver_ratings (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    driver_id   TEXT NOT NULL,
    rating      REAL NOT NULL CHECK (rating >= 0 AND rating <= 5),
    created_at  TEXT NOT NULL
);
"""

_VERIFICATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS driver_verifications (
    id                   INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id              TEXT NOT NULL,
    vehicle_model        TEXT,
    vehicle_color        TEXT,
    vehicle_plate_number TEXT,
    verification_status  TEXT NOT NULL DEFAULT 'pending'
);
"""

_OPEN_STATUSES = (
    RideStatus.ACTIVE.value,
    RideStatus.IN_PROGRESS.value,
    RideStatus.SCHEDULED.value,
)


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_PROFILES_TABLE)
    conn.execute(_RIDES_TABLE)
    conn.execute(_RATINGS_TABLE)
    conn.execute(_VERIFICATIONS_TABLE)
    conn.commit()
    return conn


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def fetch_open_rides(conn: sqlite3.Connection, seats_required: int) -> list[sqlite3.Row]:
    """Rides that are active, in progress or scheduled with enough seats, newest first."""
    placeholders = ", ".join("?" for _ in _OPEN_STATUSES)
    return conn.execute(
        f"""
        SELECT * FROM rides
        WHERE ride_status IN ({placeholders}) AND available_seats >= ?
        ORDER BY created_at DESC
        """,
        (*_OPEN_STATUSES, seats_required),
    ).fetchall()


def get_profile(conn: sqlite3.Connection, user_id: str) -> sqlite3.Row | None:
    return conn.execute("SELECT * FROM profiles WHERE id = ?", (user_id,)).fetchone()


def get_rating_stats(conn: sqlite3.Connection, driver_id: str) -> tuple[float | None, int]:
    """Return (average rating, number of ratings); average is None when unrated."""
    row = conn.execute(
        "SELECT AVG(rating) AS average, COUNT(*) AS total FROM driver_ratings WHERE driver_id = ?",
        (driver_id,),
    ).fetchone()
    return (row["average"], row["total"])


def get_verification(conn: sqlite3.Connection, user_id: str) -> sqlite3.Row | None:
    """Return the user's verification record, preferring a verified one."""
    return conn.execute(
        """
        SELECT * FROM driver_verifications
        WHERE user_id = ?
        ORDER BY (verification_status = 'verified') DESC, id DESC
        LIMIT 1
        """,
        (user_id,),
    ).fetchone()


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------


def upsert_profile(
    conn: sqlite3.Connection,
    user_id: str,
    full_name: str | None = None,
    gender: str | None = None,
    passenger_gender_preference: str = "no_preference",
    driver_gender_preference: str = "no_preference",
    avatar_url: str | None = None,
) -> None:
    conn.execute(
        """
        INSERT INTO profiles
            (id, full_name, avatar_url, gender,
             passenger_gender_preference, driver_gender_preference)
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            full_name = excluded.full_name,
            avatar_url = excluded.avatar_url,
            gender = excluded.gender,
            passenger_gender_preference = excluded.passenger_gender_preference,
            driver_gender_preference = excluded.driver_gender_preference
        """,
        (
            user_id,
            full_name,
            avatar_url,
            gender,
            passenger_gender_preference,
            driver_gender_preference,
        ),
    )
    conn.commit()


def insert_ride(conn: sqlite3.Connection, ride: RideOffer) -> bool:
    """Insert a ride. Returns False if a ride with the same id already exists."""
    try:
        conn.execute(
            """
            INSERT INTO rides
                (id, driver_id, from_location, to_location, from_lat, from_lng,
                 to_lat, to_lng, scheduled_time, available_seats, ride_status,
                 is_activated, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                ride.id,
                ride.driver_id,
                ride.from_location,
                ride.to_location,
                ride.pickup.lat if ride.pickup else None,
                ride.pickup.lng if ride.pickup else None,
                ride.destination.lat if ride.destination else None,
                ride.destination.lng if ride.destination else None,
                ride.scheduled_time.isoformat() if ride.scheduled_time else None,
                ride.available_seats,
                ride.status.value,
                int(ride.is_activated),
                ride.created_at.isoformat(),
            ),
        )
        conn.commit()
        return True
    except sqlite3.IntegrityError:
        return False


def insert_rating(conn: sqlite3.Connection, driver_id: str, rating: float) -> int:
    """Record a passenger's rating of a driver. Returns the row ID."""
    cursor = conn.execute(
        "INSERT INTO driver_ratings (driver_id, rating, created_at) VALUES (?, ?, ?)",
        (driver_id, rating, datetime.now(timezone.utc).isoformat()),
    )
    conn.commit()
    return cursor.lastrowid or 0


def insert_verification(
    conn: sqlite3.Connection,
    user_id: str,
    vehicle_model: str | None = None,
    vehicle_color: str | None = None,
    vehicle_plate_number: str | None = None,
    verification_status: str = "pending",
) -> int:
    cursor = conn.execute(
        """
        INSERT INTO driver_verifications
            (user_id, vehicle_model, vehicle_color, vehicle_plate_number, verification_status)
        VALUES (?, ?, ?, ?, ?)
        """,
        (user_id, vehicle_model, vehicle_color, vehicle_plate_number, verification_status),
    )
    conn.commit()
    return cursor.lastrowid or 0
