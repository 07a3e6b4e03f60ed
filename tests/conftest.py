"""Test configuration and shared fixtures."""

import logging
import os

# Must be set before data_enricher.config is imported
os.environ["LOG_FILE"] = ""
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "dev123"
os.environ["DUPLICATE_KEY_POLICY"] = "keep_first"

import pytest

from data_enricher.utils.diagnostics import DiagnosticBuffer
from data_enricher.utils.logger import DiagnosticsHandler, ROOT_LOGGER_NAME


@pytest.fixture
def master_csv() -> bytes:
    """Master base exported by a spreadsheet: BOM, semicolons, labeled headers."""
    text = (
        "Nome;CPF;E-mail;Telefone;Cidade\n"
        "Ana;111.111.111-11;a@x.com;111;SP\n"
        "Bruno;222.222.222-22;b@x.com;222;RJ\n"
    )
    return b"\xef\xbb\xbf" + text.encode("utf-8")


@pytest.fixture
def work_csv() -> bytes:
    """Two-column work file carrying its own names."""
    return (
        "Nome,CPF\n"
        "Ana Work,11111111111\n"
        "Carla,333.333.333-33\n"
    ).encode("utf-8")


@pytest.fixture
def master_records() -> list:
    return [
        {"cpf": "111.111.111-11", "nome": "Ana", "email": "a@x.com", "telefone": "111"},
        {"cpf": "222.222.222-22", "nome": "Bruno", "email": "b@x.com", "telefone": "222"},
    ]


@pytest.fixture
def captured_events():
    """Diagnostic events emitted below the application logger during one test."""
    buffer = DiagnosticBuffer(max_size=500)
    handler = DiagnosticsHandler(buffer)
    handler.setLevel(logging.DEBUG)

    root = logging.getLogger(ROOT_LOGGER_NAME)
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)
    try:
        yield buffer
    finally:
        root.removeHandler(handler)
        root.setLevel(previous_level)
