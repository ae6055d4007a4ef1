import pytest

from chef.config import Config
from chef.images import ImageClient
from chef.nutrition import NutritionClient
from tests.fakes import NutritionApi, image_handler, mock_client


@pytest.fixture(autouse=True)
def no_api_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("OPENAI_API_KEY", "API_NINJAS_KEY", "UNSPLASH_ACCESS_KEY"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def config() -> Config:
    return Config(retry_base_delay=0)


@pytest.fixture
def nutrition_api() -> NutritionApi:
    return NutritionApi()


@pytest.fixture
def nutrition_client(config: Config, nutrition_api: NutritionApi) -> NutritionClient:
    return NutritionClient(
        config,
        http_client=mock_client(nutrition_api, "https://nutrition.test/v1/"),
    )


@pytest.fixture
def image_client(config: Config) -> ImageClient:
    return ImageClient(
        config,
        http_client=mock_client(image_handler, "https://images.test/"),
    )
