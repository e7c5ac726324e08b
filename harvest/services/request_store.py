"""
Request Store Service
Durable storage of fetch requests in a JSON file.
"""

import os
import json
import tempfile
import threading
from typing import Dict, List, Optional

from harvest.config import logger
from harvest.exceptions import ChoiceAlreadyMade
from harvest.models import FetchRequest, RequestState, SearchResult, TorrentInfo


class RequestStore:
    """
    Stores every FetchRequest in a single JSON file keyed by request ID.
    The file is the source of truth, so a restarted process can resume every
    request that is still in progress.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _load_data(self) -> Dict[str, dict]:
        """Load raw request data from JSON file. Returns {request_id: request}."""
        try:
            if os.path.exists(self.path):
                with open(self.path, 'r') as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        return data
                    logger.error(f"Ignoring request store {self.path}: expected a JSON object")
            return {}
        except (OSError, ValueError) as e:
            logger.error(f"Error loading request store {self.path}: {e}")
            return {}

    def _save_data(self, data: Dict[str, dict]) -> None:
        """Save raw request data, replacing the file atomically."""
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".requests-", suffix=".json", dir=directory)
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Error saving request store {self.path}: {e}")
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def insert(self, request: FetchRequest) -> None:
        with self._lock:
            data = self._load_data()
            data[request.id] = request.to_dict()
            self._save_data(data)
        logger.info(f"Request {request.id} saved for chat ID {request.requester.channel_id}")

    def find_by_id(self, request_id: str) -> Optional[FetchRequest]:
        raw = self._load_data().get(request_id)
        return FetchRequest.from_dict(raw) if raw else None

    def find_by_list_message(self, chat_id: int, message_id: int) -> Optional[FetchRequest]:
        """Find the request whose result list is the given message."""
        for raw in self._load_data().values():
            request = FetchRequest.from_dict(raw)
            if request.requester.channel_id == chat_id and request.messages.list_message_id == message_id:
                return request
        return None

    def find_all_in_progress(self) -> List[FetchRequest]:
        requests = [FetchRequest.from_dict(raw) for raw in self._load_data().values()]
        return [request for request in requests if request.in_progress]

    def find_all_pending(self) -> List[FetchRequest]:
        """
        Requests the fetcher still has to drive: those in progress, plus those
        with a choice and status message whose download was never handed over.
        """
        pending = []
        for raw in self._load_data().values():
            request = FetchRequest.from_dict(raw)
            if request.in_progress:
                pending.append(request)
            elif request.state is RequestState.SELECTED and request.messages.status_message_id is not None:
                pending.append(request)
        return pending

    def find_by_requester(self, author_id: int) -> List[FetchRequest]:
        requests = [FetchRequest.from_dict(raw) for raw in self._load_data().values()]
        return [request for request in requests if request.requester.author_id == author_id]

    def set_choice(self, request_id: str, choice: SearchResult, status_message_id: int) -> None:
        """
        Record the user's choice and the status message that reports on it.
        Raises ChoiceAlreadyMade if a choice exists, the stored one is never overwritten.
        Raises KeyError if the request does not exist.
        """
        with self._lock:
            data = self._load_data()
            raw = data[request_id]
            if raw.get("choice"):
                raise ChoiceAlreadyMade(f"Request {request_id} already has a choice")
            raw["choice"] = choice.to_dict()
            raw.setdefault("messages", {})["statusMessageId"] = status_message_id
            self._save_data(data)
        logger.info(f"Choice '{choice.name}' recorded for request {request_id}")

    def update_torrent(self, request_id: str, torrent: TorrentInfo) -> None:
        """Replace the whole torrent sub-object of a request."""
        with self._lock:
            data = self._load_data()
            if request_id not in data:
                logger.warning(f"Not updating torrent of unknown request {request_id}")
                return
            data[request_id]["torrent"] = torrent.to_dict()
            self._save_data(data)

    def delete(self, request_id: str) -> bool:
        """Delete a request. Returns True if deleted."""
        with self._lock:
            data = self._load_data()
            if request_id not in data:
                return False
            del data[request_id]
            self._save_data(data)
        logger.info(f"Request {request_id} deleted")
        return True
