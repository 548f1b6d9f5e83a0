#!/usr/bin/env python3
"""
MongoDB Database Initialization Script for Tubely.

Creates the ``videos`` collection with its JSON schema validator and the
owner indexes the API relies on. Running it again is safe: an existing
collection has its validator updated and existing indexes are left alone.

Usage:
    python scripts/init_db.py [options]

Options:
    --drop          Drop the videos collection first (WARNING: destructive)
    --verbose       Display detailed operation logs
    --help          Show this help message and exit

Connection settings come from the same environment variables and .env file
as the API (MONGODB_URI, MONGODB_DB_NAME).
"""

import argparse
import sys

from datetime import UTC, datetime
from typing import Any

from pymongo import ASCENDING, DESCENDING, IndexModel, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import CollectionInvalid, OperationFailure, PyMongoError

from tubely.config import Settings, get_settings
from tubely.core.database import VIDEOS_COLLECTION


CONNECTION_TIMEOUT_MS = 5000

VIDEO_VALIDATOR: dict[str, Any] = {
    "$jsonSchema": {
        "bsonType": "object",
        "required": ["_id", "user_id", "created_at", "updated_at"],
        "properties": {
            "_id": {"bsonType": "string", "description": "Video id (UUID string)"},
            "user_id": {"bsonType": "string", "description": "Owner id (UUID string)"},
            "title": {"bsonType": "string", "maxLength": 300},
            "description": {"bsonType": "string", "maxLength": 5000},
            "thumbnail_url": {"bsonType": ["string", "null"]},
            "video_url": {
                "bsonType": ["string", "null"],
                "description": "Storage reference in 'bucket,key' form",
            },
            "created_at": {"bsonType": "date"},
            "updated_at": {"bsonType": "date"},
        },
    }
}

# Same default names as DatabaseClient.create_indexes produces at startup
VIDEO_INDEXES = [
    IndexModel([("user_id", ASCENDING)]),
    IndexModel([("user_id", ASCENDING), ("created_at", DESCENDING)]),
]


class DatabaseInitializer:
    """Creates the Tubely collections and indexes."""

    def __init__(self, settings: Settings, verbose: bool = False):
        self.settings = settings
        self.verbose = verbose
        self.client: MongoClient | None = None
        self.db: Database | None = None

    def log(self, message: str, level: str = "INFO") -> None:
        if level == "DEBUG" and not self.verbose:
            return
        timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
        print(f"[{timestamp}] [{level}] {message}")

    def connect(self) -> bool:
        """Connect and ping. Returns False if the server is unreachable."""
        self.log(f"Connecting to MongoDB at {mask_uri(self.settings.mongodb_uri)}...")
        try:
            self.client = MongoClient(
                self.settings.mongodb_uri,
                serverSelectionTimeoutMS=CONNECTION_TIMEOUT_MS,
                connectTimeoutMS=CONNECTION_TIMEOUT_MS,
            )
            self.client.admin.command("ping")
        except PyMongoError as e:
            self.log(f"Connection failed: {e}", "ERROR")
            self.log("Ensure MongoDB is running and accessible at the configured URI.", "ERROR")
            return False

        self.db = self.client[self.settings.mongodb_db_name]
        self.log(f"Using database: {self.settings.mongodb_db_name}", "DEBUG")
        return True

    def drop_videos_collection(self) -> None:
        self.log(f"Dropping collection: {VIDEOS_COLLECTION}", "WARNING")
        self.db.drop_collection(VIDEOS_COLLECTION)

    def create_videos_collection(self) -> Collection:
        """Create the collection with its validator, or update the validator in place."""
        if VIDEOS_COLLECTION in self.db.list_collection_names():
            self.log(f"Collection {VIDEOS_COLLECTION} exists, updating validation rules", "DEBUG")
            self.db.command(
                "collMod",
                VIDEOS_COLLECTION,
                validator=VIDEO_VALIDATOR,
                validationLevel="moderate",
                validationAction="error",
            )
            return self.db[VIDEOS_COLLECTION]

        try:
            self.db.create_collection(
                VIDEOS_COLLECTION,
                validator=VIDEO_VALIDATOR,
                validationLevel="moderate",
                validationAction="error",
            )
            self.log(f"Created collection: {VIDEOS_COLLECTION}")
        except CollectionInvalid:
            self.log(f"Collection {VIDEOS_COLLECTION} was created concurrently", "DEBUG")
        return self.db[VIDEOS_COLLECTION]

    def create_indexes(self, collection: Collection) -> None:
        existing = set(collection.index_information())
        for index in VIDEO_INDEXES:
            name = index.document["name"]
            if name in existing:
                self.log(f"Index {name} already exists", "DEBUG")
                continue
            try:
                collection.create_indexes([index])
            except OperationFailure as e:
                # An equivalent index under another name already exists
                self.log(f"Skipped index {name}: {e}", "WARNING")
                continue
            self.log(f"Created index: {name}")

    def verify(self) -> bool:
        collection = self.db[VIDEOS_COLLECTION]
        indexes = set(collection.index_information())
        missing = [i.document["name"] for i in VIDEO_INDEXES if i.document["name"] not in indexes]
        if missing:
            self.log(f"Missing indexes: {', '.join(missing)}", "WARNING")
        self.log(f"{VIDEOS_COLLECTION}: {collection.estimated_document_count()} documents")
        return not missing

    def close(self) -> None:
        if self.client:
            self.client.close()
            self.log("MongoDB connection closed", "DEBUG")


def mask_uri(uri: str) -> str:
    """Hide credentials in a MongoDB URI for logging."""
    if "@" in uri:
        protocol_end = uri.find("://") + 3
        at_pos = uri.find("@")
        return f"{uri[:protocol_end]}***:***{uri[at_pos:]}"
    return uri


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Initialize MongoDB for the Tubely API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/init_db.py             # Create collection and indexes
  python scripts/init_db.py --verbose   # With detailed logging
  python scripts/init_db.py --drop      # Drop the videos collection first (DESTRUCTIVE)
        """,
    )
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop the videos collection before creation (WARNING: destructive operation)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Display detailed operation logs"
    )
    return parser.parse_args()


def main() -> int:
    """
    Returns:
        Exit code (0 for success, 1 for failure).
    """
    args = parse_arguments()

    print("\n" + "=" * 60)
    print("Tubely - MongoDB Database Initialization")
    print("=" * 60 + "\n")

    initializer = DatabaseInitializer(get_settings(), verbose=args.verbose)

    try:
        if not initializer.connect():
            print("\nFailed to connect to MongoDB. Exiting.")
            return 1

        if args.drop:
            confirmation = input(
                f"\nWARNING: This will DELETE ALL DATA in '{VIDEOS_COLLECTION}'.\n"
                "Type 'yes' to confirm: "
            )
            if confirmation.lower() != "yes":
                print("Operation cancelled.")
                return 0
            initializer.drop_videos_collection()

        collection = initializer.create_videos_collection()
        initializer.create_indexes(collection)

        return 0 if initializer.verify() else 1

    except KeyboardInterrupt:
        print("\n\nInitialization interrupted by user.")
        return 130

    except PyMongoError as e:
        print(f"\nMongoDB error: {e}")
        return 1

    finally:
        initializer.close()


if __name__ == "__main__":
    sys.exit(main())
