import pytest

from aiva.ai.curl import build_curl_command, mask_secret

from conftest import mk_model


@pytest.mark.parametrize(
    "secret, masked",
    [
        ("hf_abcdefghijklmnop", "hf_a...mnop"),
        ("12345678", "********"),
        ("", ""),
    ],
)
def test_mask_secret(secret, masked):
    assert mask_secret(secret) == masked


def test_curl_masks_key_by_default():
    model = mk_model("mistral", provider="huggingface")

    cmd = build_curl_command(model, {"inputs": "it's fine"})

    assert cmd.startswith("curl -X POST https://api.test.com/mistral")
    assert "Bearer test...7890" in cmd
    assert "test-key-1234567890" not in cmd
    # single quotes in the body are shell-escaped
    assert "it'\\''s fine" in cmd


def test_curl_can_show_key():
    cmd = build_curl_command(mk_model("m"), {}, show_key=True)
    assert "Bearer test-key-1234567890" in cmd


def test_curl_openai_targets_chat_completions():
    model = mk_model("gpt", provider="openai", api_url="https://llm.test/v1/")
    cmd = build_curl_command(model, {"model": "gpt"})
    assert "https://llm.test/v1/chat/completions" in cmd
