import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from .errors import ParseError, StoreIOError
from .models import State
from .settings import Settings, load_settings


class StateStore:
    """Load/save handle for the JSON state document at ``path``.

    There is no locking: two processes saving the same file race and the
    later write wins.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    @classmethod
    def default(cls, settings: Optional[Settings] = None) -> "StateStore":
        settings = settings or load_settings()
        return cls(settings.config_file)

    def load(self) -> State:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            logger.debug("No state file at {}, starting empty", self.path)
            return State()
        except OSError as e:
            raise StoreIOError(f"failed to read config file: {e}") from e

        # json.loads raises UnicodeDecodeError for undecodable bytes
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ParseError(f"failed to parse config file {self.path}: {e}") from e

        state = State.from_dict(data)
        logger.debug("Loaded state from {} ({} contexts)", self.path, len(state.contexts or {}))
        return state

    def save(self, state: State):
        # ASCII output keeps lone surrogates from argv as \u escapes
        payload = json.dumps(state.to_dict(), indent=2)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # mkstemp creates the file with mode 0600
            fd, tmp_name = tempfile.mkstemp(prefix=".config-", suffix=".tmp", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except (OSError, ValueError) as e:
            raise StoreIOError(f"failed to write config file: {e}") from e
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
        logger.debug("Saved state to {}", self.path)
