import logging
from datetime import datetime

from pymongo import MongoClient

from config import MONGODB_URI

logger = logging.getLogger(__name__)


def database_name_from_uri(mongodb_uri: str, default: str = "signbridge") -> str:
    """Database named in the URI path, falling back to the default."""
    host_part = mongodb_uri.split("@")[-1]
    if "mongodb+srv://" in mongodb_uri and "/" in host_part:
        db_name = host_part.split("/")[1].split("?")[0]
        if db_name:
            return db_name
    return default


class DatabaseManager:
    def __init__(self, mongodb_uri: str = MONGODB_URI, client_factory=MongoClient):
        self.mongodb_uri = mongodb_uri
        self.client_factory = client_factory
        self.client = None
        self.db = None
        self.records = None

    def connect(self) -> bool:
        if not self.mongodb_uri:
            logger.info("MONGODB_URI not set, word records are disabled")
            return False

        logger.info("Attempting to connect to MongoDB at %s", self.mongodb_uri.split("@")[-1])
        connection_options = {
            'serverSelectionTimeoutMS': 30000,
            'connectTimeoutMS': 30000,
            'socketTimeoutMS': 30000,
            'retryWrites': True,
            'w': 'majority',
        }
        if "mongodb+srv://" in self.mongodb_uri:
            connection_options['tls'] = True

        try:
            self.client = self.client_factory(self.mongodb_uri, **connection_options)
            self.db = self.client[database_name_from_uri(self.mongodb_uri)]
            self.client.admin.command('ping')

            self.records = self.db["records"]
            self.records.create_index("sessionId")
            self.records.create_index([("sessionId", 1), ("timestamp", -1)])
            self.records.create_index("timestamp")
            logger.info("✅ MongoDB connection established")
            return True
        except Exception as e:
            # Recognition keeps working without persistence
            logger.error("❌ MongoDB connection failed: %s", e)
            self.client = None
            self.db = None
            self.records = None
            return False

    def is_connected(self):
        if self.client is None:
            return False
        try:
            self.client.admin.command('ping')
            return True
        except Exception:
            return False

    def save_word(self, session_id, text):
        """Store a session's committed word"""
        record = {
            "name": f"word-{session_id}",
            "content": text,
            "sessionId": session_id,
            "type": "word",
            "timestamp": datetime.now(),
        }
        result = self.records.insert_one(record)
        logger.info("✅ Word saved with ID: %s (session: %s)", result.inserted_id, session_id)
        return result.inserted_id

    def get_records(self, limit=50):
        return list(self.records.find().sort("timestamp", -1).limit(limit))

    def get_records_by_session(self, session_id):
        return list(self.records.find({"sessionId": session_id}).sort("timestamp", -1))


db_manager = DatabaseManager()
