import re

from i18nscan.hash_key import KeyRegistry, compute_key, hash_key, hash_string, radix36

KEY_FORMAT = re.compile(r"^k_[0-9a-z]{7}$")


class TestHashKey:
    def test_deterministic(self):
        assert hash_key("Hello World") == hash_key("Hello World")

    def test_ignores_whitespace(self):
        assert hash_key("Hello World") == hash_key("Hello   World") == hash_key("HelloWorld")
        assert hash_key(" 你好\n世界\t") == hash_key("你好世界")

    def test_key_format(self):
        for value in ["", "a", "Hello World", "你好世界", "x" * 500]:
            assert KEY_FORMAT.match(hash_key(value)), value

    def test_known_value(self):
        # 'a' is byte 97, which is "2p" in base 36
        assert hash_key("a") == "k_000002p"
        assert hash_key("") == "k_0000000"

    def test_context_does_not_change_key(self):
        assert hash_key("Open", "menu") == hash_key("Open", "door") == hash_key("Open")

    def test_hash_wraps_to_32_bits(self):
        assert hash_string("x" * 1000) <= 0xFFFFFFFF

    def test_radix36(self):
        assert radix36(0) == "0"
        assert radix36(35) == "z"
        assert radix36(36) == "10"


class TestKeyRegistry:
    def test_returns_computed_key(self):
        registry = KeyRegistry()
        assert registry.hash_key("Hello") == compute_key("Hello")
        assert "Hello" in registry
        assert len(registry) == 1

    def test_whitespace_variants_are_not_collisions(self):
        registry = KeyRegistry()
        messages = []
        registry.hash_key("Hello World", on_error=messages.append)
        registry.hash_key("Hello   World", on_error=messages.append)
        assert messages == []

    def test_collision_is_reported_and_key_still_returned(self):
        # "Aa" and "BB" share the same 31-multiplier rolling hash
        registry = KeyRegistry()
        messages = []
        first = registry.hash_key("Aa", on_error=messages.append)
        second = registry.hash_key("BB", on_error=messages.append)

        assert first == second == compute_key("BB")
        assert len(messages) == 1
        assert '"Aa"' in messages[0] and '"BB"' in messages[0]

    def test_module_function_uses_registry(self):
        registry = KeyRegistry()
        messages = []
        hash_key("Aa", registry=registry)
        hash_key("BB", registry=registry, on_error=messages.append)
        assert messages

    def test_clear(self):
        registry = KeyRegistry()
        registry.hash_key("Aa")
        registry.clear()
        messages = []
        registry.hash_key("BB", on_error=messages.append)
        assert messages == []
        assert len(registry) == 1
