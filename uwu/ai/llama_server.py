"""
Lifecycle of a local llama.cpp server used by the "LlamaCpp" provider.

The server is spawned from `$LLAMA_DIR/build/bin/llama-server`, detached from
uwu's process group, and exposes an OpenAI-compatible API on localhost. An
already running healthy server on the configured port is reused.
"""

import os
import signal
import subprocess
import sys
import time

from typing import Optional

import requests
from loguru import logger

from ..config import Config
from ..errors import LlamaServerError


DEFAULT_PORT = 8080
DEFAULT_CONTEXT_SIZE = 2048
HEALTH_RETRIES = 30
HEALTH_POLL_INTERVAL = 1.0

MODEL_REPOS = {
    "tinyllama-1.1b": "TinyLlama/TinyLlama-1.1B-Chat-v1.0-GGUF",
    "smollm3-3b": "ggml-org/SmolLM3-3B-GGUF",
    "gemma-3-4b": "unsloth/gemma-3-4b-it-GGUF",
}


def get_model_repo(model_name: str) -> str:
    """Maps a short model alias to its Hugging Face GGUF repository."""
    if "/" in model_name:
        return model_name
    return MODEL_REPOS.get(model_name.lower(), model_name)


def default_threads() -> int:
    return max(1, (os.cpu_count() or 1) - 1)


class LlamaCppServerManager:
    _instance: Optional["LlamaCppServerManager"] = None

    @classmethod
    def get_instance(cls) -> "LlamaCppServerManager":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def __init__(self):
        self.server_process: Optional[subprocess.Popen] = None
        self.is_running = False
        self.port = DEFAULT_PORT
        self._install_signal_handlers()

    def _install_signal_handlers(self):
        signals = [signal.SIGINT, signal.SIGTERM]
        if hasattr(signal, "SIGUSR1"):
            signals.append(signal.SIGUSR1)
        for sig in signals:
            signal.signal(sig, self._handle_signal)

    def _handle_signal(self, signum, frame):
        self.shutdown()
        sys.exit(0)

    @property
    def base_url(self) -> str:
        return f"http://localhost:{self.port}/v1"

    def _health_url(self) -> str:
        return f"http://localhost:{self.port}/health"

    def _is_healthy(self) -> bool:
        try:
            response = requests.get(self._health_url(), timeout=2)
        except requests.RequestException:
            return False
        return response.ok

    @staticmethod
    def _server_binary() -> str:
        llama_dir = os.getenv("LLAMA_DIR")
        if not llama_dir:
            raise LlamaServerError("LLAMA_DIR environment variable not set")

        server_path = os.path.join(llama_dir, "build", "bin", "llama-server")
        try:
            subprocess.run(
                [server_path, "--version"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=True,
            )
        except (OSError, subprocess.CalledProcessError) as e:
            raise LlamaServerError(f"llama-server not found at: {server_path}") from e
        return server_path

    def start_server(self, config: Config):
        if self.is_running:
            return

        self.port = config.port or DEFAULT_PORT
        server_path = self._server_binary()

        if self._is_healthy():
            logger.debug("Reusing llama.cpp server on port {}", self.port)
            self.is_running = True
            return

        server_args = [
            "--hf-repo", get_model_repo(config.model),
            "--port", str(self.port),
            "--ctx-size", str(config.context_size or DEFAULT_CONTEXT_SIZE),
            "--threads", str(config.threads or default_threads()),
            "--log-disable",
        ]
        logger.debug("Starting llama.cpp server: {} {}", server_path, " ".join(server_args))
        self.server_process = subprocess.Popen(
            [server_path] + server_args,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )

        for _ in range(HEALTH_RETRIES):
            time.sleep(HEALTH_POLL_INTERVAL)
            if self._is_healthy():
                self.is_running = True
                return

        raise LlamaServerError("Failed to start Llama.cpp server")

    def shutdown(self):
        if self.server_process is not None:
            self.server_process.terminate()
            self.server_process = None
        self.is_running = False
