# Copyright Thales 2025
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Per-file symmetric encryption.

Each stored file gets its own AES-256 key and CBC initialization vector.
Material is generated once at upload time and kept next to the file entry
as base64 text. Padding is PKCS7 on the AES block size.

Note: the key material is persisted as-is in the file entry store. Protecting
that store (or wrapping the keys with a KMS) is outside of this module.
"""

import base64
import binascii
import io
import logging
import os
from typing import BinaryIO, Tuple

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from pydantic import BaseModel

logger = logging.getLogger(__name__)

KEY_SIZE = 32
IV_SIZE = 16
BLOCK_SIZE_BITS = algorithms.AES.block_size
BLOCK_SIZE = BLOCK_SIZE_BITS // 8
DEFAULT_CHUNK_SIZE = 64 * 1024


class CorruptOrMismatchedKeyError(Exception):
    """
    Raised when ciphertext cannot be decrypted with the given material:
    wrong key or IV, truncated or tampered data, or undecodable stored material.
    """

    pass


class CipherMaterial(BaseModel):
    key: bytes
    iv: bytes

    def encoded(self) -> Tuple[str, str]:
        """Return (key, iv) as base64 text, the form stored in file entries."""
        return (
            base64.b64encode(self.key).decode("ascii"),
            base64.b64encode(self.iv).decode("ascii"),
        )

    @classmethod
    def from_encoded(cls, key_b64: str, iv_b64: str) -> "CipherMaterial":
        try:
            key = base64.b64decode(key_b64, validate=True)
            iv = base64.b64decode(iv_b64, validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            raise CorruptOrMismatchedKeyError(f"Stored encryption material is not valid base64: {e}") from e
        if len(key) != KEY_SIZE or len(iv) != IV_SIZE:
            raise CorruptOrMismatchedKeyError(f"Stored encryption material has wrong length (key={len(key)} bytes, iv={len(iv)} bytes)")
        return cls(key=key, iv=iv)


class _EncryptingReader(io.RawIOBase):
    """
    Read-only stream that yields the AES-CBC ciphertext of `source`.
    Plaintext is pulled lazily, `chunk_size` bytes at a time.
    """

    def __init__(self, source: BinaryIO, cipher: Cipher, chunk_size: int):
        super().__init__()
        self._source = source
        self._encryptor = cipher.encryptor()
        self._padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
        self._chunk_size = chunk_size
        self._buffer = bytearray()
        self._exhausted = False

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        while not self._buffer and not self._exhausted:
            chunk = self._source.read(self._chunk_size)
            if chunk:
                self._buffer += self._encryptor.update(self._padder.update(chunk))
            else:
                self._buffer += self._encryptor.update(self._padder.finalize())
                self._buffer += self._encryptor.finalize()
                self._exhausted = True

        n = min(len(b), len(self._buffer))
        b[:n] = self._buffer[:n]
        del self._buffer[:n]
        return n


class CipherEngine:
    """
    Generates per-file material and performs AES-256-CBC/PKCS7 encryption.

    Stateless apart from the chunk size used for streaming, so a single
    instance is shared by all requests.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be a positive number of bytes")
        self.chunk_size = chunk_size

    def generate_material(self) -> CipherMaterial:
        return CipherMaterial(key=os.urandom(KEY_SIZE), iv=os.urandom(IV_SIZE))

    @staticmethod
    def _cipher(key: bytes, iv: bytes) -> Cipher:
        return Cipher(algorithms.AES(key), modes.CBC(iv))

    def encrypt(self, plaintext: bytes, key: bytes, iv: bytes) -> bytes:
        padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
        padded = padder.update(plaintext) + padder.finalize()
        encryptor = self._cipher(key, iv).encryptor()
        return encryptor.update(padded) + encryptor.finalize()

    def decrypt(self, ciphertext: bytes, key: bytes, iv: bytes) -> bytes:
        if not ciphertext or len(ciphertext) % BLOCK_SIZE != 0:
            raise CorruptOrMismatchedKeyError(f"Ciphertext length {len(ciphertext)} is not a positive multiple of the {BLOCK_SIZE}-byte block size")
        try:
            decryptor = self._cipher(key, iv).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(BLOCK_SIZE_BITS).unpadder()
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as e:
            raise CorruptOrMismatchedKeyError(f"Decryption failed, wrong key or corrupted content: {e}") from e

    def encrypting_reader(self, source: BinaryIO, key: bytes, iv: bytes) -> BinaryIO:
        """
        Wrap `source` into a stream of ciphertext, so that large uploads can be
        encrypted while they are written to the blob store.
        """
        raw = _EncryptingReader(source, self._cipher(key, iv), self.chunk_size)
        return io.BufferedReader(raw, buffer_size=self.chunk_size)
