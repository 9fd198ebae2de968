import pytest

from rationcart.config import Config, Tuning

ENV = {
    "SUPABASE_URL": "https://abc.supabase.co/",
    "SUPABASE_SERVICE_ROLE_KEY": "service-key",
    "GOOGLE_VISION_API_KEY": "vision-key",
}


def test_from_env():
    cfg = Config.from_env(ENV)
    assert cfg.supabase_url == "https://abc.supabase.co"
    assert cfg.supabase_service_key == "service-key"
    assert cfg.google_vision_api_key == "vision-key"
    assert cfg.tuning == Tuning()


def test_missing_key():
    env = dict(ENV)
    del env["GOOGLE_VISION_API_KEY"]
    with pytest.raises(RuntimeError, match="GOOGLE_VISION_API_KEY"):
        Config.from_env(env)


def test_placeholder_value():
    with pytest.raises(RuntimeError, match="placeholder"):
        Config.from_env({**ENV, "SUPABASE_SERVICE_ROLE_KEY": "PLACEHOLDER"})


def test_tuning_overrides():
    t = Tuning.from_env({"RATIONCART_CACHE_TTL_HOURS": "6", "RATIONCART_BATCH_SIZE": "2"})
    assert t.cache_ttl_hours == 6.0
    assert t.batch_size == 2
    assert t.courtesy_delay_s == 0.5
