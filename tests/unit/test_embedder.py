"""Unit tests for the embedding clients and tokenizer adapters.

The LangChain and tiktoken backends are patched out, so nothing is
downloaded; the ``integration`` tests at the bottom exercise the real
libraries.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from ragstore.ingestion.embedder import (
    EmbeddingClient,
    HuggingFaceEmbeddingClient,
    OpenAIEmbeddingClient,
    _CachedModelClient,
    get_embedding_client,
)
from ragstore.ingestion.tokenizer import TiktokenTokenizer, Tokenizer


def _fake_backend() -> MagicMock:
    backend = MagicMock()
    backend.embed_query.side_effect = lambda text: [float(len(text)), 1.0]
    backend.embed_documents.side_effect = lambda texts: [[float(len(t)), 1.0] for t in texts]
    return backend


# ── HuggingFace ────────────────────────────────────────────────────────


class TestHuggingFaceEmbeddingClient:
    def test_embeds_through_langchain(self) -> None:
        with patch("langchain_huggingface.HuggingFaceEmbeddings", return_value=_fake_backend()) as cls:
            client = HuggingFaceEmbeddingClient("my-model")
            assert client.embed_one("abc") == [3.0, 1.0]
            assert client.embed_many(["a", "bb"]) == [[1.0, 1.0], [2.0, 1.0]]
        cls.assert_called_once_with(model_name="my-model")

    def test_backend_cached_per_model(self) -> None:
        with patch("langchain_huggingface.HuggingFaceEmbeddings", side_effect=lambda **_: _fake_backend()) as cls:
            client = HuggingFaceEmbeddingClient("default-model")
            client.embed_one("x")
            client.embed_one("y")
            client.embed_many(["z"], model="other-model")
        assert [c.kwargs["model_name"] for c in cls.call_args_list] == ["default-model", "other-model"]

    def test_empty_batch_skips_backend(self) -> None:
        with patch("langchain_huggingface.HuggingFaceEmbeddings") as cls:
            assert HuggingFaceEmbeddingClient("m").embed_many([]) == []
        cls.assert_not_called()

    def test_model_required(self) -> None:
        with pytest.raises(ValueError, match="default_model"):
            HuggingFaceEmbeddingClient("")

    def test_satisfies_protocol(self) -> None:
        assert isinstance(HuggingFaceEmbeddingClient("m"), EmbeddingClient)


# ── OpenAI-compatible ──────────────────────────────────────────────────


class TestOpenAIEmbeddingClient:
    def test_cloud_configuration(self) -> None:
        with patch("langchain_openai.OpenAIEmbeddings", return_value=_fake_backend()) as cls:
            client = OpenAIEmbeddingClient("text-embedding-3-small", api_key="sk-test", base_url="")
            client.embed_one("hi")
        cls.assert_called_once_with(model="text-embedding-3-small", api_key="sk-test")

    def test_compatible_server_configuration(self) -> None:
        with patch("langchain_openai.OpenAIEmbeddings", return_value=_fake_backend()) as cls:
            client = OpenAIEmbeddingClient(
                "bge-large", api_key="lmstudio", base_url="http://127.0.0.1:1234/v1"
            )
            client.embed_many(["hi"])
        cls.assert_called_once_with(
            model="bge-large",
            api_key="lmstudio",
            base_url="http://127.0.0.1:1234/v1",
            check_embedding_ctx_length=False,
        )

    def test_api_key_required(self) -> None:
        with pytest.raises(ValueError, match="api_key"):
            OpenAIEmbeddingClient("text-embedding-3-small", api_key="")

    def test_backend_errors_propagate(self) -> None:
        backend = MagicMock()
        backend.embed_documents.side_effect = ConnectionError("rate limited")
        with patch("langchain_openai.OpenAIEmbeddings", return_value=backend):
            client = OpenAIEmbeddingClient("m", api_key="k")
            with pytest.raises(ConnectionError, match="rate limited"):
                client.embed_many(["a"])


class TestCachedModelClient:
    def test_backend_factory_must_be_overridden(self) -> None:
        class NoBackend(_CachedModelClient):
            pass

        with pytest.raises(TypeError, match="_create_backend"):
            NoBackend("some-model")  # type: ignore[abstract]


# ── Factory ────────────────────────────────────────────────────────────


class TestGetEmbeddingClient:
    def test_huggingface(self) -> None:
        assert isinstance(get_embedding_client("huggingface"), HuggingFaceEmbeddingClient)

    def test_openai(self) -> None:
        with patch("ragstore.ingestion.embedder.OpenAIEmbeddingClient") as cls:
            get_embedding_client("OpenAI")
        cls.assert_called_once_with()

    def test_unknown_provider(self) -> None:
        with pytest.raises(ValueError, match="Unsupported embedding provider"):
            get_embedding_client("cohere")


# ── Tokenizer ──────────────────────────────────────────────────────────


class TestTiktokenTokenizer:
    def test_encode_treats_special_tokens_as_text(self) -> None:
        encoding = MagicMock()
        encoding.encode.return_value = [1, 2]
        with patch("tiktoken.get_encoding", return_value=encoding) as get_encoding:
            tok = TiktokenTokenizer("cl100k_base")
            assert tok.encode("<|endoftext|>") == [1, 2]
        get_encoding.assert_called_once_with("cl100k_base")
        encoding.encode.assert_called_once_with("<|endoftext|>", disallowed_special=())

    def test_model_selects_encoding(self) -> None:
        with patch("tiktoken.encoding_for_model", return_value=MagicMock()) as for_model:
            TiktokenTokenizer(model="gpt-3.5-turbo")
        for_model.assert_called_once_with("gpt-3.5-turbo")

    def test_decode_accepts_any_sequence(self) -> None:
        encoding = MagicMock()
        encoding.decode.return_value = "text"
        with patch("tiktoken.get_encoding", return_value=encoding):
            assert TiktokenTokenizer().decode((5, 6)) == "text"
        encoding.decode.assert_called_once_with([5, 6])

    @pytest.mark.integration
    def test_real_round_trip(self) -> None:
        tok = TiktokenTokenizer("cl100k_base")
        assert isinstance(tok, Tokenizer)
        text = "Hawking radiation slowly evaporates black holes, even in café chatter."
        assert tok.decode(tok.encode(text)) == text
