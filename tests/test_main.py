from __future__ import annotations

import pytest

from agents.errors import ConfigurationError


def test_missing_api_key_is_fatal(app, monkeypatch):
    import main
    from config.settings import Settings

    monkeypatch.setattr(main, "settings", Settings(openai_api_key=None))

    with pytest.raises(SystemExit) as exc_info:
        main.main()

    assert exc_info.value.code == 1


def test_require_openai_api_key(app):
    import main
    from config.settings import Settings

    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        main.require_openai_api_key(Settings(openai_api_key=""))

    main.require_openai_api_key(Settings(openai_api_key="sk-test"))
