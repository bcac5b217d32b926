import os
from datetime import timedelta
from enum import Enum

from dotenv import load_dotenv

load_dotenv(dotenv_path=".env")


class ApplicationMode(str, Enum):
    WORKER = "worker"
    SERVER = "server"
    LOCAL = "local"


# Application Constants
APPLICATION_NAME = os.getenv("PHOTOS_APPLICATION_NAME", "photo-pipeline")
APPLICATION_MODE = ApplicationMode(os.getenv("PHOTOS_APPLICATION_MODE", "local"))
APP_HOST = str(os.getenv("PHOTOS_APP_HTTP_HOST", "localhost"))
APP_PORT = int(os.getenv("PHOTOS_APP_HTTP_PORT", "6900"))
PHOTOS_API_TOKEN = os.getenv("PHOTOS_API_TOKEN", "")

# Workflow Client Constants
WORKFLOW_HOST = os.getenv("PHOTOS_WORKFLOW_HOST", "localhost")
WORKFLOW_PORT = os.getenv("PHOTOS_WORKFLOW_PORT", "7233")
WORKFLOW_NAMESPACE = os.getenv("PHOTOS_WORKFLOW_NAMESPACE", "default")
MAX_CONCURRENT_ACTIVITIES = int(os.getenv("PHOTOS_MAX_CONCURRENT_ACTIVITIES", "5"))
GRACEFUL_SHUTDOWN_TIMEOUT = timedelta(
    seconds=int(os.getenv("PHOTOS_GRACEFUL_SHUTDOWN_TIMEOUT_SECONDS", "30"))
)

# Workflow Constants
PHOTO_UPLOAD_WORKFLOW_PREFIX = "photo_upload_"
ACTIVITY_START_TO_CLOSE_TIMEOUT = timedelta(
    seconds=int(os.getenv("PHOTOS_ACTIVITY_TIMEOUT_SECONDS", "30"))
)
ACTIVITY_HEARTBEAT_TIMEOUT = timedelta(
    seconds=int(os.getenv("PHOTOS_ACTIVITY_HEARTBEAT_TIMEOUT_SECONDS", "10"))
)
ACTIVITY_MAX_ATTEMPTS = int(os.getenv("PHOTOS_ACTIVITY_MAX_ATTEMPTS", "6"))

# Object Store Constants
OBJECT_STORE_BACKEND = os.getenv("PHOTOS_OBJECT_STORE_BACKEND", "local")
STORAGE_ROOT_PATH = os.getenv("PHOTOS_STORAGE_ROOT_PATH", "/tmp/storage")
OBJECT_STORE_NAME = os.getenv("OBJECT_STORE_NAME", "objectstore")
DAPR_MAX_GRPC_MESSAGE_LENGTH = int(
    os.getenv("DAPR_MAX_GRPC_MESSAGE_LENGTH", str(100 * 1024 * 1024))
)

# Database Constants
DATABASE_URL = os.getenv("PHOTOS_DATABASE_URL") or "sqlite:////tmp/photos.db"
DATABASE_CONNECT_ARGS = (
    os.getenv("PHOTOS_DATABASE_CONNECT_ARGS") or """{"check_same_thread": false}"""
)

# Logger Constants
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SERVICE_NAME: str = os.getenv("OTEL_SERVICE_NAME", "photo-pipeline")
SERVICE_VERSION: str = os.getenv("OTEL_SERVICE_VERSION", "0.1.0")
OTEL_RESOURCE_ATTRIBUTES: str = os.getenv("OTEL_RESOURCE_ATTRIBUTES", "")
OTEL_EXPORTER_OTLP_ENDPOINT: str = os.getenv(
    "OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317"
)
ENABLE_OTLP_LOGS: bool = os.getenv("ENABLE_OTLP_LOGS", "false").lower() == "true"

# OTEL Constants
OTEL_EXPORTER_TIMEOUT_SECONDS = int(os.getenv("OTEL_EXPORTER_TIMEOUT_SECONDS", "30"))
OTEL_BATCH_DELAY_MS = int(os.getenv("OTEL_BATCH_DELAY_MS", "5000"))
OTEL_BATCH_SIZE = int(os.getenv("OTEL_BATCH_SIZE", "512"))
OTEL_QUEUE_SIZE = int(os.getenv("OTEL_QUEUE_SIZE", "2048"))
