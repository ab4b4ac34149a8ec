import os
import sys

# Add the parent directory (backend) to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
from fastapi.testclient import TestClient

from main import app

SAMPLE_DDL = """
CREATE TABLE users (
    id INT PRIMARY KEY AUTO_INCREMENT,
    email VARCHAR(255) NOT NULL UNIQUE,
    name VARCHAR(100) DEFAULT 'anon' COMMENT 'display name',
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE orders (
    id BIGINT NOT NULL AUTO_INCREMENT,
    user_id INT NOT NULL,
    total DECIMAL(10, 2) NOT NULL DEFAULT 0.00,
    status ENUM('new', 'paid', 'shipped') DEFAULT 'new',
    PRIMARY KEY (id),
    CONSTRAINT fk_orders_user FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE INDEX idx_orders_status ON orders (status);
"""


class FakeLLM:
    """Stands in for OllamaClient/GroqClient; records prompts and returns canned text."""

    name = "Fake"
    model = "fake-model"

    def __init__(self, reply: str = "", healthy: bool = True):
        self.reply = reply
        self.healthy = healthy
        self.prompts: list[str] = []

    def generate(self, prompt, max_retries=None):
        self.prompts.append(prompt)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply

    def is_healthy(self):
        return (True, self.model) if self.healthy else (False, "connection refused")


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sample_ddl():
    return SAMPLE_DDL


@pytest.fixture
def fake_llm():
    return FakeLLM()
