"""Unit tests for field-name normalization."""

import pytest

from data_enricher.parsers.field_normalizer import (
    ContentSniffedStrategy,
    FieldMappingStrategy,
    HeaderDrivenStrategy,
    clean_label,
    normalize_field_names,
    normalize_header_label,
)


class TestHeaderLabels:
    """Test cases for header label rules."""

    @pytest.mark.parametrize("label,expected", [
        ("CPF/CNPJ", "cpf"),
        ("E-mail", "email"),
        ("Nome Completo", "nomecompleto"),
        ("Nome", "nome"),
        (" name ", "nome"),
        ("Documento", "cpf"),
        ("Nº Doc", "cpf"),
        ("Phone_Number", "telefone"),
        ("Celular / Fone", "telefone"),
        ("TELEFONE", "telefone"),
        ("Data-de_Nascimento", "datadenascimento"),
        ("Cidade", "cidade"),
    ])
    def test_label_rules(self, label, expected):
        assert normalize_header_label(label) == expected

    def test_cpf_wins_over_later_rules(self):
        assert normalize_header_label("Doc Email") == "cpf"

    def test_email_wins_over_phone(self):
        assert normalize_header_label("email_fone") == "email"

    def test_clean_label_strips_noise(self):
        assert clean_label(" Rua - Numero_Casa ") == "ruanumerocasa"


class TestHeaderDrivenNormalization:
    """Test cases for header-driven mapping of whole row sets."""

    def test_maps_every_row(self):
        rows = [
            {"Nome": "Ana", "CPF": "1", "E-mail": "a@x.com", "Fone": "9", "Cidade": "SP"},
            {"Nome": "Bia", "CPF": "2", "E-mail": "b@x.com", "Fone": "8", "Cidade": "RJ"},
        ]

        normalized = normalize_field_names(rows)

        assert normalized == [
            {"nome": "Ana", "cpf": "1", "email": "a@x.com", "telefone": "9", "cidade": "SP"},
            {"nome": "Bia", "cpf": "2", "email": "b@x.com", "telefone": "8", "cidade": "RJ"},
        ]

    def test_unrecognized_columns_are_kept_cleaned(self):
        normalized = normalize_field_names([{"CPF": "1", "Nome Completo": "Ana Maria"}])

        assert normalized == [{"cpf": "1", "nomecompleto": "Ana Maria"}]

    def test_extra_keys_on_ragged_rows_are_kept(self):
        rows = [{"CPF": "1"}, {"CPF": "2", "_extra_0": "x"}]

        normalized = normalize_field_names(rows)

        assert normalized[1] == {"cpf": "2", "extra0": "x"}

    def test_colliding_columns_keep_the_last(self, captured_events):
        normalized = normalize_field_names([{"CPF": "1", "Documento": "2"}])

        assert normalized == [{"cpf": "2"}]
        warnings = captured_events.get_recent_events(level="WARNING")
        assert warnings[-1].payload["field"] == "cpf"
        assert warnings[-1].payload["labels"] == ["CPF", "Documento"]

    def test_empty_input(self):
        assert normalize_field_names([]) == []

    def test_declines_when_nothing_is_recognized(self):
        assert HeaderDrivenStrategy().build_mapping([{"0": "a", "1": "b"}]) is None


class TestContentSniffedNormalization:
    """Test cases for the content-sniffing fallback."""

    def test_header_written_in_first_row_is_consumed(self):
        rows = [
            {"0": "Nome", "1": "Email", "2": "Telefone", "3": "CPF"},
            {"0": "Ana", "1": "a@x.com", "2": "111", "3": "123"},
            {"0": "Bia", "1": "b@x.com", "2": "222", "3": "456"},
        ]

        normalized = normalize_field_names(rows)

        assert normalized == [
            {"nome": "Ana", "email": "a@x.com", "telefone": "111", "cpf": "123"},
            {"nome": "Bia", "email": "b@x.com", "telefone": "222", "cpf": "456"},
        ]

    def test_positional_labels_fill_the_gaps(self):
        rows = [
            {"0": "x", "1": "y", "2": "z", "3": "w"},
            {"0": "Ana", "1": "a@x.com", "2": "111", "3": "123"},
        ]

        normalized = normalize_field_names(rows)

        assert normalized == [{"nome": "Ana", "email": "a@x.com", "telefone": "111", "cpf": "123"}]

    def test_content_wins_over_position(self):
        mapping = ContentSniffedStrategy().build_mapping([
            {"0": "documento", "1": "nome", "2": "e-mail"},
        ])

        assert mapping == {"0": "cpf", "1": "nome", "2": "email"}

    def test_position_three_is_always_cpf(self):
        mapping = ContentSniffedStrategy().build_mapping([{"3": "telefone"}])

        assert mapping == {"3": "cpf"}

    def test_blank_label_is_name(self):
        mapping = ContentSniffedStrategy().build_mapping([{"": "x", "Extra Col": "y"}])

        assert mapping == {"": "nome", "Extra Col": "extracol"}

    def test_unknown_columns_still_consume_probe_row(self):
        normalized = normalize_field_names([{"Foo": "1"}, {"Foo": "2"}])

        assert normalized == [{"foo": "2"}]

    def test_dropping_an_unrecognized_first_row_is_a_warning(self, captured_events):
        normalize_field_names([{"Foo": "1"}, {"Foo": "2"}])

        warnings = captured_events.get_recent_events(level="WARNING", component="data_enricher.normalizer")
        assert warnings[-1].payload == {"strategy": "content", "dropped_row": {"Foo": "1"}}

    def test_recognized_first_row_is_dropped_quietly(self, captured_events):
        normalize_field_names([{"0": "Nome", "1": "CPF"}, {"0": "Ana", "1": "111"}])

        warnings = captured_events.get_recent_events(level="WARNING", component="data_enricher.normalizer")
        assert not any("dropped_row" in w.payload for w in warnings)


class TestStrategySelection:
    """Test cases for plugging strategies into the normalizer."""

    def test_header_only_passes_rows_through_when_declined(self):
        rows = [{"Foo": "1"}, {"Foo": "2"}]

        normalized = normalize_field_names(rows, strategies=[HeaderDrivenStrategy()])

        assert normalized == rows
        assert normalized[0] is not rows[0]

    def test_custom_strategy(self):
        class UpperStrategy(FieldMappingStrategy):
            name = "upper"

            def build_mapping(self, rows):
                return {label: label.upper() for label in rows[0]}

        normalized = normalize_field_names([{"cpf": "1"}], strategies=[UpperStrategy()])

        assert normalized == [{"CPF": "1"}]

    def test_first_accepting_strategy_is_used(self):
        rows = [{"CPF": "1"}, {"CPF": "2"}]

        normalized = normalize_field_names(
            rows, strategies=[HeaderDrivenStrategy(), ContentSniffedStrategy()]
        )

        assert normalized == [{"cpf": "1"}, {"cpf": "2"}]
