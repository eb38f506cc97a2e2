"""
Result store for Design Critic
Persists each analysis and its screenshot under one random identifier
"""

import logging
import os
import re
import secrets
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import redis
from pydantic import ValidationError

from design_critic.api.models import AnalysisResult, StoredAnalysis
from design_critic.exceptions import PersistenceError

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def generate_result_id() -> str:
    """128-bit random identifier, hex encoded"""
    return secrets.token_hex(16)


def is_valid_result_id(result_id: str) -> bool:
    return bool(_ID_PATTERN.match(result_id or ""))


def serialize_result(result: AnalysisResult) -> bytes:
    return result.model_dump_json(by_alias=True, indent=2).encode("utf-8")


def deserialize_result(payload, result_id: str) -> AnalysisResult:
    try:
        return AnalysisResult.model_validate_json(payload)
    except ValidationError as e:
        logger.error(f"❌ Stored analysis {result_id} is unreadable: {str(e)}")
        raise PersistenceError(f"Stored analysis {result_id} is unreadable") from e


class ResultStore(ABC):
    """
    Write-once storage of (result, image) pairs keyed by an opaque id.

    Holding an id is the only access control, so ids come from a
    cryptographically strong source. Nothing is ever updated or deleted.
    """

    @abstractmethod
    def put(self, result: AnalysisResult, image_bytes: bytes) -> str:
        """Persist both artifacts and return the new identifier"""

    @abstractmethod
    def get(self, result_id: str) -> Optional[StoredAnalysis]:
        """Return both artifacts, or None unless both are present"""


class FileSystemResultStore(ResultStore):
    """
    Stores `{id}.json` and `{id}.png` in two parallel directories.

    The image is published first and the JSON document last, each through a
    temp file and an atomic rename. A result is only visible once its JSON
    document exists, and `get` additionally requires the image.
    """

    def __init__(self, results_dir: str, screenshots_dir: str):
        self.results_dir = Path(results_dir)
        self.screenshots_dir = Path(screenshots_dir)

    def _result_path(self, result_id: str) -> Path:
        return self.results_dir / f"{result_id}.json"

    def _image_path(self, result_id: str) -> Path:
        return self.screenshots_dir / f"{result_id}.png"

    def _new_id(self) -> str:
        while True:
            result_id = generate_result_id()
            if not (
                self._result_path(result_id).exists()
                or self._image_path(result_id).exists()
            ):
                return result_id

    @staticmethod
    def _write_atomic(path: Path, data: bytes):
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def put(self, result: AnalysisResult, image_bytes: bytes) -> str:
        payload = serialize_result(result)

        try:
            self.results_dir.mkdir(parents=True, exist_ok=True)
            self.screenshots_dir.mkdir(parents=True, exist_ok=True)
            result_id = self._new_id()
        except OSError as e:
            logger.error(f"❌ Result store unavailable: {str(e)}")
            raise PersistenceError(f"Result store unavailable: {str(e)}") from e

        image_path = self._image_path(result_id)
        try:
            self._write_atomic(image_path, image_bytes)
            self._write_atomic(self._result_path(result_id), payload)
        except OSError as e:
            logger.error(f"❌ Failed to persist analysis {result_id}: {str(e)}")
            # The JSON document was never published, so drop the orphaned image
            image_path.unlink(missing_ok=True)
            raise PersistenceError(f"Failed to persist analysis: {str(e)}") from e

        logger.info(f"💾 Saved analysis {result_id}")
        return result_id

    def get(self, result_id: str) -> Optional[StoredAnalysis]:
        if not is_valid_result_id(result_id):
            return None

        try:
            payload = self._result_path(result_id).read_bytes()
            image_bytes = self._image_path(result_id).read_bytes()
        except FileNotFoundError:
            return None

        return StoredAnalysis(
            result=deserialize_result(payload, result_id),
            image_bytes=image_bytes,
        )


class RedisResultStore(ResultStore):
    """
    Stores both artifacts in Redis, written together in one MULTI/EXEC
    transaction. Suitable when several service instances share results.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        key_prefix: str = "design",
        client: redis.Redis = None,
    ):
        self.key_prefix = key_prefix

        if client is not None:
            self.client = client
            return

        try:
            # Create connection pool for efficiency; values are raw bytes
            self.pool = redis.ConnectionPool.from_url(
                redis_url,
                max_connections=20,
                socket_timeout=5,
                socket_connect_timeout=5,
                retry_on_timeout=True,
            )
            self.client = redis.Redis(connection_pool=self.pool)

            # Test connection
            self.client.ping()
            logger.info(f"✅ Redis connected successfully: {redis_url}")
        except redis.ConnectionError as e:
            logger.error(f"❌ Redis connection failed: {str(e)}")
            raise RuntimeError(f"Failed to connect to Redis: {str(e)}")

    def _result_key(self, result_id: str) -> str:
        return f"{self.key_prefix}:result:{result_id}"

    def _image_key(self, result_id: str) -> str:
        return f"{self.key_prefix}:image:{result_id}"

    def put(self, result: AnalysisResult, image_bytes: bytes) -> str:
        payload = serialize_result(result)

        try:
            result_id = generate_result_id()
            while self.client.exists(self._result_key(result_id), self._image_key(result_id)):
                result_id = generate_result_id()

            pipe = self.client.pipeline(transaction=True)
            pipe.set(self._image_key(result_id), image_bytes)
            pipe.set(self._result_key(result_id), payload)
            pipe.execute()
        except redis.RedisError as e:
            logger.error(f"❌ Redis write failed: {str(e)}")
            raise PersistenceError(f"Failed to persist analysis: {str(e)}") from e

        logger.info(f"💾 Saved analysis {result_id} to Redis")
        return result_id

    def get(self, result_id: str) -> Optional[StoredAnalysis]:
        if not is_valid_result_id(result_id):
            return None

        try:
            payload, image_bytes = self.client.mget(
                self._result_key(result_id), self._image_key(result_id)
            )
        except redis.RedisError as e:
            logger.error(f"❌ Redis read failed for {result_id}: {str(e)}")
            raise PersistenceError(f"Failed to read analysis: {str(e)}") from e

        if payload is None or image_bytes is None:
            return None

        return StoredAnalysis(
            result=deserialize_result(payload, result_id),
            image_bytes=image_bytes,
        )
