"""Tests for search key normalization."""

import pytest

from gamesdb.normalize import normalize


class TestNormalize:
    """Tests for the normalize function."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Sonic the Hedgehog", "sonicthehedgehog"),
            ("Super Mario World", "supermarioworld"),
            ("Pokémon Red", "pokemonred"),
            ("Street Fighter II': Champion Edition", "streetfighteriichampionedition"),
            ("Legend of Zelda, The", "thelegendofzelda"),
            ("Ratchet & Clank", "ratchetandclank"),
            ("  Tetris  ", "tetris"),
            ("Sega Genesis", "segagenesis"),
            ("segagenesis", "segagenesis"),
        ],
    )
    def test_normalize(self, text, expected):
        assert normalize(text) == expected

    @pytest.mark.parametrize("text", ["", None])
    def test_empty_input(self, text):
        assert normalize(text) == ""

    def test_deterministic(self):
        title = "Castlevania: Symphony of the Night (USA) [!]"
        assert normalize(title) == normalize(title)

    @pytest.mark.parametrize(
        "noisy",
        [
            "Super Game (Europe)",
            "Super Game (USA, Europe) (Rev 1)",
            "Super Game [!]",
            "Super Game (Japan) [b]",
            "SUPER GAME",
            "Super-Game",
            "Super Game - Deluxe Edition",
            "Super Game: Game of the Year Edition",
            "Super Game Special Edition",
        ],
    )
    def test_noise_insensitive(self, noisy):
        """Titles that only differ by tags, case or edition suffix share a key."""
        assert normalize(noisy) == normalize("Super Game")

    @pytest.mark.parametrize(
        "trailing,leading",
        [
            ("Legend of Zelda, The", "The Legend of Zelda"),
            ("Legend of Zelda, The (USA)", "The Legend of Zelda"),
            ("Simpsons, The - Deluxe Edition", "The Simpsons"),
        ],
    )
    def test_trailing_article_moves_to_front(self, trailing, leading):
        assert normalize(trailing) == normalize(leading)

    def test_article_inside_title_is_kept(self):
        assert normalize("Theme Park") == "themepark"

    def test_edition_only_title_keeps_its_words(self):
        assert normalize("Special Edition") == "specialedition"

    def test_edition_word_inside_title_is_kept(self):
        assert normalize("Golden Axe") != normalize("Axe")

    def test_key_contains_only_letters_and_digits(self):
        key = normalize("F-Zero X: 64DD (Japan) [T+Eng] – Expansion!")
        assert key.isalnum()
        assert key == key.lower()
