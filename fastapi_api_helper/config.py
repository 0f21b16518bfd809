"""Configuration classes for fastapi-api-helper."""

from dataclasses import dataclass


@dataclass
class APIHelperConfig:
    """
    Configuration for APIHelper behavior.

    This class centralizes the defaults used by the APIHelper engines, making
    it easier to customize behavior across your application.

    Attributes:
        default_per_page: Items per page when not specified (default: 20)
        max_per_page: Maximum allowed items per page (default: 100)
        multiget_max: Maximum ids fetched by one multiget request (default: 10)
        multiget_param: Request parameter holding multiget ids (default: "id")
        multiget_find_by: Field multiget ids are matched against (default: "id")
        set_headers: Set Link and count headers when paginating (default: True)

    Example:
        def get_api_helper_config():
            return APIHelperConfig(default_per_page=25)

        @app.get("/posts/")
        def read_posts(
            helper: APIHelper = Depends(APIHelper),
            config: APIHelperConfig = Depends(get_api_helper_config),
        ):
            helper.apply_config(config)
            ...
    """

    # Pagination settings
    default_per_page: int = 20
    max_per_page: int = 100
    set_headers: bool = True

    # Multiget settings
    multiget_max: int = 10
    multiget_param: str = "id"
    multiget_find_by: str = "id"

    def __post_init__(self):
        """Validate configuration values."""
        if self.max_per_page < 1:
            raise ValueError("max_per_page must be >= 1")
        if self.default_per_page < 1:
            raise ValueError("default_per_page must be >= 1")
        if self.default_per_page > self.max_per_page:
            raise ValueError("default_per_page cannot exceed max_per_page")
        if self.multiget_max < 1:
            raise ValueError("multiget_max must be >= 1")
        if not self.multiget_param:
            raise ValueError("multiget_param must not be empty")
        if not self.multiget_find_by:
            raise ValueError("multiget_find_by must not be empty")


# Pre-defined configurations for common use cases
class APIHelperPresets:
    """Pre-defined APIHelperConfig presets for common use cases."""

    @staticmethod
    def default() -> APIHelperConfig:
        """Default configuration with sensible defaults."""
        return APIHelperConfig()

    @staticmethod
    def high_volume(max_per_page: int = 500, default_per_page: int = 100) -> APIHelperConfig:
        """
        Configuration for high-volume APIs.

        Args:
            max_per_page: Maximum items per page
            default_per_page: Default items per page
        """
        return APIHelperConfig(
            max_per_page=max_per_page,
            default_per_page=default_per_page,
        )

    @staticmethod
    def small_batches(multiget_max: int = 5, max_per_page: int = 25) -> APIHelperConfig:
        """
        Configuration keeping pages and multiget batches small.

        Args:
            multiget_max: Maximum ids per multiget request
            max_per_page: Maximum items per page
        """
        return APIHelperConfig(
            multiget_max=multiget_max,
            max_per_page=max_per_page,
            default_per_page=min(20, max_per_page),
        )
