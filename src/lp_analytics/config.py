from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path.cwd() / ".env"
load_dotenv(dotenv_path=ENV_PATH)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True, populate_by_name=True)

    subgraph_url: str = Field(
        default="https://api.thegraph.com/subgraphs/name/uniswap/uniswap-v2",
        alias="LP_SUBGRAPH_URL",
    )
    blocks_subgraph_url: str = Field(
        default="https://api.thegraph.com/subgraphs/name/blocklytics/ethereum-blocks",
        alias="LP_BLOCKS_SUBGRAPH_URL",
    )
    database_url: str = Field(default="sqlite:///./data/lp_analytics.db", alias="LP_DATABASE_URL")
    http_timeout_seconds: float = Field(default=30.0, alias="LP_HTTP_TIMEOUT_SECONDS")
    snapshot_page_size: int = Field(default=1000, alias="LP_SNAPSHOT_PAGE_SIZE")
    block_batch_size: int = Field(default=100, alias="LP_BLOCK_BATCH_SIZE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


settings = Settings()


class Config:
    @classmethod
    def sqlalchemy_url(cls) -> str:
        return settings.database_url
