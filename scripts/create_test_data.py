#!/usr/bin/env python3
"""
Test Data Generation Script for Tubely.

Seeds draft video records for a handful of development users and prints a
bearer token for each of them, so the API and frontend can be exercised
locally without a separate login service.

Development user ids are derived deterministically from their index, so
re-running the script (with --clean) replaces the same users' records.

Usage:
    python scripts/create_test_data.py [options]

Options:
    --users INT     Number of development users (default: 3)
    --videos INT    Draft videos per user (default: 5)
    --clean         Delete the development users' videos before generation
    --seed INT      Random seed for reproducible data generation
    --verbose       Display detailed operation logs
    --help          Show this help message and exit
"""

import argparse
import random
import sys

from datetime import UTC, datetime, timedelta
from uuid import NAMESPACE_URL, UUID, uuid5

from faker import Faker
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from tubely.config import Settings, get_settings
from tubely.core.auth import create_access_token
from tubely.core.database import VIDEOS_COLLECTION
from tubely.models.video import Video


CONNECTION_TIMEOUT_MS = 5000
DEV_USER_NAMESPACE = "https://tubely.local/dev-users/"


def dev_user_id(index: int) -> UUID:
    return uuid5(NAMESPACE_URL, f"{DEV_USER_NAMESPACE}{index}")


class TestDataGenerator:
    """
    Generates draft video records for development users.

    Records are built through the Video model so they match what the API
    writes (string UUIDs, UTC timestamps, no storage reference yet).
    """

    def __init__(self, settings: Settings, seed: int | None = None, verbose: bool = False):
        self.settings = settings
        self.seed = seed
        self.verbose = verbose
        self.client: MongoClient | None = None
        self.db: Database | None = None
        self._video_count = 0

        self.fake = Faker()
        if seed is not None:
            random.seed(seed)
            Faker.seed(seed)

    def log(self, message: str, level: str = "INFO") -> None:
        if level == "DEBUG" and not self.verbose:
            return
        timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
        print(f"[{timestamp}] [{level}] {message}")

    def connect(self) -> bool:
        try:
            self.client = MongoClient(
                self.settings.mongodb_uri, serverSelectionTimeoutMS=CONNECTION_TIMEOUT_MS
            )
            self.client.admin.command("ping")
        except PyMongoError as e:
            self.log(f"Connection failed: {e}", "ERROR")
            return False

        self.db = self.client[self.settings.mongodb_db_name]
        return True

    def clean_test_data(self, user_ids: list[UUID]) -> int:
        result = self.db[VIDEOS_COLLECTION].delete_many(
            {"user_id": {"$in": [str(user_id) for user_id in user_ids]}}
        )
        self.log(f"Deleted {result.deleted_count} existing development videos")
        return result.deleted_count

    def build_video(self, user_id: UUID) -> Video:
        created_at = self.fake.date_time_between(start_date="-30d", end_date="now", tzinfo=UTC)
        return Video(
            user_id=user_id,
            title=self.fake.sentence(nb_words=random.randint(3, 7)).rstrip("."),
            description=self.fake.paragraph(nb_sentences=3),
            created_at=created_at,
            updated_at=created_at + timedelta(minutes=random.randint(0, 90)),
        )

    def generate_videos(self, user_ids: list[UUID], per_user: int) -> None:
        self.log(f"Generating {per_user} draft videos for {len(user_ids)} users...")
        documents = [
            self.build_video(user_id).to_document() for user_id in user_ids for _ in range(per_user)
        ]
        if not documents:
            return

        result = self.db[VIDEOS_COLLECTION].insert_many(documents)
        self._video_count += len(result.inserted_ids)
        for document in documents:
            self.log(f"  Created video {document['_id']}: {document['title']}", "DEBUG")

    def display_summary(self, user_ids: list[UUID]) -> None:
        self.log("=" * 60)
        self.log("TEST DATA GENERATION SUMMARY")
        self.log("=" * 60)
        self.log(f"  Videos created: {self._video_count}")
        if self.seed is not None:
            self.log(f"  Random seed used: {self.seed}")

        print(f"\nBearer tokens (valid for {self.settings.jwt_expiration_hours} hours):\n")
        for user_id in user_ids:
            print(f"  {user_id}")
            print(f"    {create_access_token(user_id, self.settings)}\n")

    def close(self) -> None:
        if self.client:
            self.client.close()
            self.log("MongoDB connection closed", "DEBUG")


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate development data for the Tubely API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python scripts/create_test_data.py                  # 3 users, 5 videos each
    python scripts/create_test_data.py --videos 20      # More videos per user
    python scripts/create_test_data.py --clean --seed 42
        """,
    )
    parser.add_argument("--users", type=int, default=3, help="Number of development users (default: 3)")
    parser.add_argument("--videos", type=int, default=5, help="Draft videos per user (default: 5)")
    parser.add_argument(
        "--clean",
        action="store_true",
        help="Delete the development users' videos before generation",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data")
    parser.add_argument("--verbose", action="store_true", help="Display detailed operation logs")
    return parser.parse_args()


def main() -> int:
    args = parse_arguments()

    print("\n" + "=" * 60)
    print("Tubely Test Data Generator")
    print("=" * 60)

    generator = TestDataGenerator(get_settings(), seed=args.seed, verbose=args.verbose)
    user_ids = [dev_user_id(i) for i in range(args.users)]

    try:
        if not generator.connect():
            return 1

        if args.clean:
            generator.clean_test_data(user_ids)

        generator.generate_videos(user_ids, args.videos)
        generator.display_summary(user_ids)
        return 0

    except KeyboardInterrupt:
        generator.log("Operation cancelled by user", "WARNING")
        return 130

    except PyMongoError as e:
        generator.log(f"MongoDB error: {e}", "ERROR")
        return 1

    finally:
        generator.close()


if __name__ == "__main__":
    sys.exit(main())
