"""Tests for cache key generation."""

from carecache.cache.keys import CacheKeys, escape_glob, listing_key


class TestCacheKeys:
    """Test cache key generation."""

    def test_versioned_key(self) -> None:
        """Versioned key is prefix + version + ':' + key."""
        keys = CacheKeys()
        assert keys.versioned("clients:1:10", "v1") == "version:v1:clients:1:10"

    def test_custom_prefixes(self) -> None:
        """Prefixes are configurable."""
        keys = CacheKeys(version_prefix="cc:ver:", tag_prefix="cc:tag:")
        assert keys.versioned("providers", "2") == "cc:ver:2:providers"
        assert keys.tag("providers") == "cc:tag:providers"

    def test_tag_key(self) -> None:
        """Tag index key has correct format."""
        assert CacheKeys().tag("contracts") == "tag:contracts"

    def test_version_namespace(self) -> None:
        """Namespace ends with a separator so v1 does not match v10."""
        assert CacheKeys().version_namespace("v1") == "version:v1:"

    def test_prefix_pattern(self) -> None:
        """Prefix pattern is scoped to the version."""
        assert CacheKeys().prefix_pattern("clients:", "v1") == "version:v1:clients:*"

    def test_prefix_pattern_escapes_metacharacters(self) -> None:
        """Glob metacharacters in caller input are escaped."""
        pattern = CacheKeys().prefix_pattern("search:[a]*?", "v1")
        assert pattern == "version:v1:search:\\[a\\]\\*\\?*"

    def test_version_pattern(self) -> None:
        assert CacheKeys().version_pattern("v2") == "version:v2:*"

    def test_tag_pattern(self) -> None:
        assert CacheKeys().tag_pattern() == "tag:*"


class TestEscapeGlob:
    """Test glob escaping."""

    def test_plain_text_unchanged(self) -> None:
        assert escape_glob("clients:1:10") == "clients:1:10"

    def test_backslash_escaped(self) -> None:
        assert escape_glob("a\\b") == "a\\\\b"


class TestListingKey:
    """Test paginated listing key construction."""

    def test_unfiltered_listing(self) -> None:
        """None filters render as empty segments."""
        assert listing_key("clients", 1, 10, *[None] * 7) == "clients:1:10:::::::"

    def test_filtered_listing(self) -> None:
        key = listing_key("clients", 3, 10, "acme", "ACTIVE", None, True)
        assert key == "clients:3:10:acme:ACTIVE::true"

    def test_no_filters(self) -> None:
        assert listing_key("industries", 2, 50) == "industries:2:50"
