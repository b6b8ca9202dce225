"""Credentials file storage for the ecobee command-line client.

The credentials file is plain text, one value per line:

    line 1: application api key
    line 2: access token expiration (MM/DD/YY hh:mm:ss AM)
    line 3: access token
    line 4: refresh token

Lines 2-4 only exist after the first successful authorization.
"""

from __future__ import annotations

import logging
import tempfile
from datetime import datetime
from pathlib import Path

from .const import TOKEN_EXPIRATION_FORMAT, TOKEN_LINE_COUNT
from .models import StoredCredential

_LOGGER = logging.getLogger(__name__)


class CredentialsFileError(Exception):
    """Base exception for credentials file problems."""


class MissingCredentialsFileError(CredentialsFileError):
    """Exception raised when the credentials file does not exist."""


class MissingApiKeyError(CredentialsFileError):
    """Exception raised when the credentials file holds no api key."""


class CredentialStore:
    """Owns the credentials file and an in-memory copy of its token.

    The cached credential is only replaced by explicit writes; reads after
    the first one never touch the disk again.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Location of the credentials file.

        """
        self._path = path
        self._api_key: str | None = None
        self._credential: StoredCredential | None = None

    @property
    def path(self) -> Path:
        """Return the credentials file location."""
        return self._path

    def read_api_key(self) -> str:
        """Read the api key from the first line of the file.

        Returns:
            The trimmed api key.

        Raises:
            MissingCredentialsFileError: If the file does not exist.
            MissingApiKeyError: If the first line is empty.

        """
        if self._api_key is not None:
            return self._api_key

        lines = self._read_lines()
        api_key = lines[0].strip() if lines else ""
        if not api_key:
            error_msg = f"No api key found on the first line of {self._path}"
            raise MissingApiKeyError(error_msg)

        self._api_key = api_key
        return api_key

    def has_token(self) -> bool:
        """Return True if the file exists and holds a token pair."""
        if not self._path.exists():
            return False
        return len(self._read_lines()) >= TOKEN_LINE_COUNT

    def read_token(self) -> StoredCredential | None:
        """Return the stored credential, reading the file on first use.

        Returns:
            The cached or parsed credential, or None if the file holds no
            token lines.

        Raises:
            CredentialsFileError: If the expiration line is malformed.

        """
        if self._credential is not None:
            return self._credential

        if not self.has_token():
            return None

        lines = self._read_lines()
        try:
            expiration = datetime.strptime(lines[1].strip(), TOKEN_EXPIRATION_FORMAT)
        except ValueError as err:
            error_msg = f"Malformed token expiration in {self._path}: {lines[1]!r}"
            raise CredentialsFileError(error_msg) from err

        self._credential = StoredCredential(
            api_key=self.read_api_key(),
            token_expiration=expiration,
            access_token=lines[2].strip(),
            refresh_token=lines[3].strip(),
        )
        _LOGGER.debug("Access Token: %s", self._credential.access_token)
        _LOGGER.debug("Refresh Token: %s", self._credential.refresh_token)
        _LOGGER.debug("Token Expiration: %s", self._credential.token_expiration)
        return self._credential

    def write_token(self, credential: StoredCredential) -> None:
        """Cache the credential and rewrite the whole file with it.

        Args:
            credential: Credential to persist.

        Raises:
            CredentialsFileError: If the file cannot be written.

        """
        self._credential = credential
        self._api_key = credential.api_key
        self._write_lines(
            [
                credential.api_key,
                credential.token_expiration.strftime(TOKEN_EXPIRATION_FORMAT),
                credential.access_token,
                credential.refresh_token,
            ]
        )
        _LOGGER.debug("Stored new tokens in %s", self._path)

    def trim_to_api_key_only(self) -> None:
        """Drop the stored tokens, keeping only the api key line.

        The next run will have to go through authorization again.
        """
        api_key = self.read_api_key()
        self._credential = None
        self._write_lines([api_key])
        _LOGGER.debug("Removed stored tokens from %s", self._path)

    def _read_lines(self) -> list[str]:
        if not self._path.exists():
            error_msg = f"Credentials file not found: {self._path}"
            raise MissingCredentialsFileError(error_msg)
        try:
            return self._path.read_text(encoding="utf-8").splitlines()
        except OSError as err:
            error_msg = f"Cannot read credentials file {self._path}: {err}"
            raise CredentialsFileError(error_msg) from err

    def _write_lines(self, lines: list[str]) -> None:
        text = "".join(f"{line}\n" for line in lines)
        temp_path: Path | None = None

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self._path.parent,
                delete=False,
                suffix=".tmp",
            ) as tmp_file:
                temp_path = Path(tmp_file.name)
                tmp_file.write(text)
            temp_path.replace(self._path)
        except OSError as err:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            error_msg = f"Cannot write credentials file {self._path}: {err}"
            raise CredentialsFileError(error_msg) from err
