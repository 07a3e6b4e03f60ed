"""Unit tests for the enriched CSV export."""

import datetime

from data_enricher.services.export_service import build_export_filename, serialize_enriched

RECORDS = [
    {"cpf": "111.111.111-11", "nome": "", "email": "a@x.com", "telefone": "111"},
    {"cpf": "222.222.222-22", "nome": "", "email": "", "telefone": ""},
]


class TestSerializeEnriched:
    """Test cases for serialize_enriched."""

    def test_defaults_are_semicolon_with_bom(self):
        content = serialize_enriched(RECORDS)

        assert content.startswith(b"\xef\xbb\xbf")
        assert content.decode("utf-8-sig").split("\r\n") == [
            "cpf;nome;email;telefone",
            "111.111.111-11;;a@x.com;111",
            "222.222.222-22;;;",
            "",
        ]

    def test_custom_delimiter_without_bom(self):
        content = serialize_enriched(RECORDS[:1], delimiter=",", include_bom=False)

        assert content == b"cpf,nome,email,telefone\r\n111.111.111-11,,a@x.com,111\r\n"

    def test_values_containing_the_delimiter_are_quoted(self):
        content = serialize_enriched(
            [{"cpf": "1", "nome": "Silva; Ana", "email": "", "telefone": ""}], include_bom=False
        )

        assert content.decode("utf-8").splitlines()[1] == '1;"Silva; Ana";;'

    def test_header_only_for_empty_input(self):
        assert serialize_enriched([], include_bom=False) == b"cpf;nome;email;telefone\r\n"

    def test_accented_names_are_utf8(self):
        content = serialize_enriched(
            [{"cpf": "1", "nome": "João", "email": "", "telefone": ""}], include_bom=False
        )

        assert "João".encode("utf-8") in content


class TestExportFilename:
    """Test cases for build_export_filename."""

    def test_dated_filename(self):
        assert build_export_filename(today=datetime.date(2024, 1, 31)) == "dados_enriquecidos_2024-01-31.csv"

    def test_custom_prefix(self):
        assert build_export_filename("saida", datetime.date(2024, 5, 2)) == "saida_2024-05-02.csv"
