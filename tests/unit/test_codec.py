"""Tests for the C# enum codec."""

from pathlib import Path

import pytest

from enumsync.core.codec import (
    escape_string,
    find_declarations,
    generate,
    mask_source,
    parse,
    parse_all,
    unescape_string,
)
from enumsync.core.config import SyncConfig
from enumsync.core.errors import ParseError, ValidationError
from enumsync.core.merge import merge
from enumsync.core.models import EnumDefinition


class TestGenerate:
    """Test definition -> C# source."""

    def test_sequential_definition(self) -> None:
        definition = EnumDefinition(enum_name="Letters", values=["A", "B"])
        text = generate(definition)

        assert "A = 0," in text
        assert "B = 1," in text
        assert "Flags" not in text

    def test_flags_definition(self) -> None:
        definition = EnumDefinition(enum_name="Letters", use_flags=True, values=["A", "B", "C"])
        text = generate(definition)

        assert "[System.Flags]" in text
        assert "A = 1," in text
        assert "B = 2," in text
        assert "C = 4," in text

    def test_flags_attribute_directly_precedes_enum(self) -> None:
        definition = EnumDefinition(enum_name="Letters", use_flags=True, values=["A"])
        lines = generate(definition).splitlines()
        index = lines.index("    [System.Flags]")
        assert lines[index + 1] == "    public enum Letters"

    def test_full_layout(self, weapons: EnumDefinition) -> None:
        expected = "\n".join(
            [
                "// <auto-generated>",
                "//     Generated by enumsync from the WeaponType enum definition.",
                "//     Member names, values, tooltips and obsolete markers edited",
                "//     in this file are synced back into the definition.",
                "// </auto-generated>",
                "",
                "namespace Game.Enums",
                "{",
                "    public enum WeaponType",
                "    {",
                '        [UnityEngine.Tooltip("Melee")]',
                "        Sword = 0,",
                "        Bow = 1,",
                '        [UnityEngine.Tooltip("Casts \\"spells\\"")]',
                "        Staff = 2,",
                '        [System.Obsolete("Removed from the enum definition")]',
                "        Axe = 3,",
                "    }",
                "}",
                "",
            ]
        )
        assert generate(weapons) == expected

    def test_removed_members_follow_active_ones(self, weapons: EnumDefinition) -> None:
        text = generate(weapons)
        assert text.index("Staff = 2,") < text.index("Axe = 3,")

    def test_global_namespace_has_no_block(self) -> None:
        definition = EnumDefinition(enum_name="Letters", namespace="", values=["A"])
        text = generate(definition)

        assert "namespace" not in text
        assert "public enum Letters\n{\n    A = 0,\n}\n" in text

    def test_header_and_tooltips_can_be_disabled(self, weapons: EnumDefinition) -> None:
        config = SyncConfig(include_header=False, include_tooltips=False)
        text = generate(weapons, config)

        assert text.startswith("namespace Game.Enums")
        assert "Tooltip" not in text

    def test_empty_enum(self) -> None:
        definition = EnumDefinition(enum_name="Empty", namespace="")
        text = generate(definition, SyncConfig(include_header=False))
        assert text == "public enum Empty\n{\n}\n"

    def test_pinned_numbers_are_used(self) -> None:
        definition = EnumDefinition(
            enum_name="Codes", values=["A", "B"], pinned_numbers={"A": 10}
        )
        text = generate(definition)
        assert "A = 10," in text
        assert "B = 11," in text

    def test_deterministic(self, weapons: EnumDefinition) -> None:
        assert generate(weapons) == generate(weapons.model_copy(deep=True))

    def test_invalid_definition_is_not_generated(self) -> None:
        definition = EnumDefinition(enum_name="Bad", values=["ok", "class", "2fast", "ok"])

        with pytest.raises(ValidationError) as exc_info:
            generate(definition)

        problems = exc_info.value.problems
        assert any("'class'" in p for p in problems)
        assert any("'2fast'" in p for p in problems)
        assert any("more than once" in p for p in problems)

    def test_bad_namespace_is_rejected(self) -> None:
        definition = EnumDefinition(enum_name="Letters", namespace="Game..Enums", values=["A"])
        with pytest.raises(ValidationError):
            generate(definition)

    def test_flags_fill_the_int_range(self) -> None:
        definition = EnumDefinition(
            enum_name="Big", use_flags=True, values=[f"V{i}" for i in range(31)]
        )
        assert "V30 = 1073741824," in generate(definition)

    def test_numbers_outside_int_are_rejected(self) -> None:
        definition = EnumDefinition(
            enum_name="Big", use_flags=True, values=[f"V{i}" for i in range(33)]
        )

        with pytest.raises(ValidationError) as exc_info:
            generate(definition)

        assert exc_info.value.problems == [
            "value 'V31' = 2147483648 does not fit in an int",
            "value 'V32' = 4294967296 does not fit in an int",
        ]

    def test_pinned_and_removed_numbers_are_range_checked(self) -> None:
        definition = EnumDefinition(
            enum_name="Codes",
            values=["Low", "High"],
            pinned_numbers={"Low": -(2**31), "High": 2**31},
            removed_values=["Gone"],
            removed_value_numbers=[-(2**31) - 1],
        )

        with pytest.raises(ValidationError) as exc_info:
            generate(definition)

        problems = exc_info.value.problems
        assert len(problems) == 2
        assert any("'High'" in p for p in problems)
        assert any("'Gone'" in p for p in problems)


class TestParse:
    """Test C# source -> ParsedEnum."""

    def test_parses_generated_output(self, weapons: EnumDefinition) -> None:
        parsed = parse(generate(weapons))

        assert parsed.enum_name == "WeaponType"
        assert parsed.namespace == "Game.Enums"
        assert parsed.use_flags is False
        assert parsed.value_names() == ["Sword", "Bow", "Staff", "Axe"]
        assert [v.numeric_value for v in parsed.values] == [0, 1, 2, 3]
        assert [v.is_obsolete for v in parsed.values] == [False, False, False, True]
        assert parsed.values[0].tooltip == "Melee"
        assert parsed.values[2].tooltip == 'Casts "spells"'

    def test_flags_detected(self) -> None:
        parsed = parse("[System.Flags]\npublic enum Mask { A = 1, B = 2 }")
        assert parsed.use_flags is True

    @pytest.mark.parametrize(
        "attribute",
        ["[Flags]", "[FlagsAttribute]", "[System.Flags()]", "[Serializable, Flags]"],
    )
    def test_flags_attribute_variants(self, attribute: str) -> None:
        parsed = parse(f"{attribute}\npublic enum Mask {{ A = 1 }}")
        assert parsed.use_flags is True

    def test_flags_on_other_type_is_ignored(self) -> None:
        text = "[Flags] enum First { A = 1 }\n"
        parsed = parse("public class Holder { }\n" + "public enum Plain { A = 0 }\n" + text)
        assert parsed.enum_name == "Plain"
        assert parsed.use_flags is False

    def test_implicit_values_follow_csharp_rules(self) -> None:
        parsed = parse("enum E { A, B, C = 10, D }")

        assert [v.numeric_value for v in parsed.values] == [0, 1, 10, 11]
        assert [v.explicit for v in parsed.values] == [False, False, True, False]

    def test_value_expressions(self) -> None:
        text = """
        enum E
        {
            A = 0x10,
            B = 1 << 3,
            C = A | B,
            D = E.C + 1,
            F = -2,
            G = ~0,
            H = 0b101,
            I = (2 + 3) * 4,
            J = 1_000,
            K = 7u,
        }
        """
        numbers = {v.name: v.numeric_value for v in parse(text).values}

        assert numbers == {
            "A": 16,
            "B": 8,
            "C": 24,
            "D": 25,
            "F": -2,
            "G": -1,
            "H": 5,
            "I": 20,
            "J": 1000,
            "K": 7,
        }

    def test_obsolete_attribute_variants(self) -> None:
        text = """
        enum E
        {
            [Obsolete] A = 1,
            [System.ObsoleteAttribute("gone", false)] B = 2,
            [Tooltip("kept"), Obsolete("x")] C = 3,
            D = 4,
        }
        """
        parsed = parse(text)
        assert [v.is_obsolete for v in parsed.values] == [True, True, True, False]
        assert parsed.values[2].tooltip == "kept"

    def test_attributes_in_any_order(self) -> None:
        text = """
        enum E
        {
            [System.Obsolete("Removed from the enum definition")]
            [UnityEngine.Tooltip("first")]
            A = 1,
        }
        """
        value = parse(text).values[0]
        assert value.is_obsolete is True
        assert value.tooltip == "first"

    def test_comments_are_ignored(self) -> None:
        text = """
        // enum Fake { X = 99 }
        namespace Real.Space
        {
            /* a block comment with } and , */
            public enum E
            {
                A = 1, // trailing comment, with comma
                /* B = 2, */
                C = 3,
            }
        }
        """
        parsed = parse(text)
        assert parsed.enum_name == "E"
        assert parsed.namespace == "Real.Space"
        assert parsed.value_names() == ["A", "C"]

    def test_tooltip_with_structural_characters(self) -> None:
        text = 'enum E { [Tooltip("a, b } [c] // d")] A = 1, B = 2 }'
        parsed = parse(text)
        assert parsed.values[0].tooltip == "a, b } [c] // d"
        assert parsed.value_names() == ["A", "B"]

    def test_verbatim_tooltip(self) -> None:
        parsed = parse('enum E { [Tooltip(@"say ""hi"" \\n")] A = 1 }')
        assert parsed.values[0].tooltip == 'say "hi" \\n'

    def test_file_scoped_namespace(self) -> None:
        parsed = parse("namespace Game.Scoped;\n\n[Flags]\npublic enum E { A = 1 }\n")
        assert parsed.namespace == "Game.Scoped"
        assert parsed.use_flags is True

    def test_underlying_type(self) -> None:
        parsed = parse("public enum E : byte { A = 1, B }")
        assert [v.numeric_value for v in parsed.values] == [1, 2]

    def test_no_namespace(self) -> None:
        assert parse("enum E { A }").namespace == ""

    def test_empty_body(self) -> None:
        parsed = parse("public enum Nothing { }")
        assert parsed.enum_name == "Nothing"
        assert parsed.values == []

    def test_line_numbers(self) -> None:
        parsed = parse("enum E\n{\n    A = 1,\n\n    B = 2,\n}\n")
        assert [v.line for v in parsed.values] == [3, 5]

    def test_no_enum_raises(self) -> None:
        with pytest.raises(ParseError, match="No enum declaration"):
            parse("public class NotAnEnum { }")

    def test_unclosed_enum_raises(self) -> None:
        with pytest.raises(ParseError, match="never closed"):
            parse("enum E { A = 1,")

    def test_unknown_reference_raises(self) -> None:
        with pytest.raises(ParseError, match="Unknown enum member"):
            parse("enum E { A = Missing }")

    def test_non_ascii_member_names_round_trip(self) -> None:
        definition = EnumDefinition(enum_name="Arme", values=["Épée", "Arc", "_Bâton"])
        parsed = parse(generate(definition))

        assert [v.name for v in parsed.values] == ["Épée", "Arc", "_Bâton"]
        assert merge(definition, parsed) == definition

    def test_non_ascii_enum_and_namespace_round_trip(self) -> None:
        definition = EnumDefinition(
            enum_name="Énumération",
            namespace="Jeu.Données",
            values=["Élément", "Ωmega"],
            removed_values=["Ancien"],
            removed_value_numbers=[2],
        )
        parsed = parse(generate(definition))

        assert parsed.enum_name == "Énumération"
        assert parsed.namespace == "Jeu.Données"
        assert merge(definition, parsed) == definition

    def test_reference_to_non_ascii_member(self) -> None:
        parsed = parse("enum Farbe { Grün = 2, Blau = Grün << 1 }")
        assert [v.numeric_value for v in parsed.values] == [2, 4]

    def test_error_has_location_when_source_known(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse("enum E\n{\n    A = 1 +,\n}\n", source=Path("E.cs"))

        context = exc_info.value.context
        assert context is not None
        assert context.file == Path("E.cs")
        assert context.line == 3
        assert "E.cs:3:" in str(exc_info.value)


class TestStrings:
    """Test tooltip escaping and the source mask."""

    @pytest.mark.parametrize(
        "text",
        [
            'quote " inside',
            "back\\slash",
            "two\nlines",
            "tab\there",
            "",
            "next\u0085line",
            "line\u2028separator",
            "paragraph\u2029separator",
        ],
    )
    def test_escape_round_trip(self, text: str) -> None:
        assert unescape_string('"' + escape_string(text) + '"') == text

    def test_unicode_escapes(self) -> None:
        assert unescape_string('"\\u00e9\\x41"') == "éA"

    def test_tooltip_round_trip_through_codec(self) -> None:
        tooltip = 'He said "no"\\path\nnext line'
        definition = EnumDefinition(enum_name="E", values=["A"], tooltips=[tooltip])
        assert parse(generate(definition)).values[0].tooltip == tooltip

    def test_line_terminators_are_escaped(self) -> None:
        assert escape_string("a\u0085b\u2028c\u2029d") == "a\\u0085b\\u2028c\\u2029d"

    def test_tooltip_with_line_separators_stays_on_one_line(self) -> None:
        tooltip = "one\u2028two\u2029three\u0085four"
        definition = EnumDefinition(enum_name="E", values=["A"], tooltips=[tooltip])
        text = generate(definition)

        assert '[UnityEngine.Tooltip("one\\u2028two\\u2029three\\u0085four")]' in text
        assert not any(ch in text for ch in "\u0085\u2028\u2029")
        assert parse(text).values[0].tooltip == tooltip

    def test_mask_keeps_length_and_lines(self) -> None:
        text = 'a // c\n"s,t" /* x\ny */ b'
        masked = mask_source(text)

        assert len(masked) == len(text)
        assert masked.count("\n") == text.count("\n")
        assert "," not in masked
        assert masked.endswith(" b")


class TestParseAll:
    """Test reading every enum in a file."""

    def test_reads_each_declaration(self) -> None:
        text = """
        namespace Game.Items
        {
            public enum Loot { Coin, Gem }

            [System.Flags]
            public enum Slots { Head = 1, Hands = 2 }

            public class Chest { public Loot Contents; }
        }
        """
        parsed = parse_all(text)

        assert [p.enum_name for p in parsed] == ["Loot", "Slots"]
        assert [p.use_flags for p in parsed] == [False, True]
        assert all(p.namespace == "Game.Items" for p in parsed)
        assert [v.name for v in parsed[1].values] == ["Head", "Hands"]

    def test_each_enum_takes_nearest_namespace(self) -> None:
        text = "namespace A { enum X { P } }\nnamespace B { enum Y { Q } }\n"
        assert [p.namespace for p in parse_all(text)] == ["A", "B"]

    def test_file_without_enums(self) -> None:
        assert parse_all("public class Player { }") == []

    def test_member_names_are_scoped_per_enum(self) -> None:
        parsed = parse_all("enum X { A = 5 }\nenum Y { A, B }")
        assert [v.numeric_value for v in parsed[1].values] == [0, 1]

    def test_declaration_offsets(self) -> None:
        text = "enum X { A }\nenum Y { }"
        declarations = find_declarations(text)

        assert [d.name for d in declarations] == ["X", "Y"]
        assert text[declarations[1].open_brace] == "{"
        assert text[declarations[1].close_brace] == "}"
        assert find_declarations(text, limit=1) == declarations[:1]

    def test_unclosed_later_enum_raises(self) -> None:
        with pytest.raises(ParseError, match="Enum Y is never closed"):
            parse_all("enum X { A }\nenum Y { B,")
