#! /bin/env python3

# Copyright (C) 2022- Luis López <luis@cuarentaydos.com>
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU General Public License
# as published by the Free Software Foundation; either version 2
# of the License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program; if not, write to the Free Software
# Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA  02110-1301,
# USA.


import contextlib
import logging
import os

import openai

from . import Transcriptor, TranscriptionError

LOGGER = logging.getLogger(__name__)

OPENAI_BASE_URL = os.environ.get("OPENAI_BASE_URL", None)
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", None)

OPENAI_TRANSCRIPTION_LANGUAGE: str = os.environ.get("OPENAI_TRANSCRIPTION_LANGUAGE", "")
OPENAI_TRANSCRIPTION_MODEL: str = os.environ.get(
    "OPENAI_TRANSCRIPTION_MODEL", "whisper-1"
)
OPENAI_TRANSCRIPTION_TIMEOUT: float = float(
    os.environ.get("OPENAI_TRANSCRIPTION_TIMEOUT", "600")
)

# Hard limit of the audio transcriptions endpoint
MAX_FILE_SIZE: int = 25 * 1024 * 1024


class OpenAI(Transcriptor):
    max_file_size = MAX_FILE_SIZE

    def __init__(
        self,
        *,
        model: str = OPENAI_TRANSCRIPTION_MODEL,
        language: str = OPENAI_TRANSCRIPTION_LANGUAGE,
        timeout: float = OPENAI_TRANSCRIPTION_TIMEOUT,
    ) -> None:
        self.model = model
        self.language = language
        self.timeout = timeout

    @contextlib.contextmanager
    def custom_api(self):
        kwargs = {"timeout": self.timeout}
        if OPENAI_BASE_URL:
            kwargs["base_url"] = OPENAI_BASE_URL
        if OPENAI_API_KEY:
            kwargs["api_key"] = OPENAI_API_KEY

        try:
            client = openai.OpenAI(**kwargs)
        except openai.OpenAIError as e:
            raise TranscriptionError(f"Transcription error: {e}") from e

        with client:
            yield client

    def transcribe_bytes(self, data: bytes, *, filename: str) -> str:
        LOGGER.info(
            f"Sending {filename} to OpenAI ({len(data) / 1024 / 1024:.2f} MB,"
            f" model='{self.model}')"
        )

        kwargs = {}
        if self.language:
            kwargs["language"] = self.language

        with self.custom_api() as client:
            try:
                resp = client.audio.transcriptions.create(
                    model=self.model,
                    file=(filename, data),
                    response_format="json",
                    **kwargs,
                )
            except openai.APIStatusError as e:
                LOGGER.debug(f"full error details: {e.response.text}")
                raise TranscriptionError(f"Transcription error: {e.message}") from e
            except openai.OpenAIError as e:
                raise TranscriptionError(f"Transcription error: {e}") from e

        return resp.text.strip()
