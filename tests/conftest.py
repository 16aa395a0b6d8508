import pytest

from content_auditor.api import deps


@pytest.fixture(autouse=True)
def clear_dependency_caches():
    """Settings, rules and adapters are cached per process; isolate each test."""
    caches = (
        deps.get_settings,
        deps.get_rules,
        deps.get_item_repo,
        deps.get_action_tokens,
    )
    for fn in caches:
        fn.cache_clear()
    yield
    for fn in caches:
        fn.cache_clear()
