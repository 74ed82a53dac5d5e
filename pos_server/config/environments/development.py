from ..settings import Settings


class DevelopmentSettings(Settings):
    debug: bool = True
    database_url: str = "duckdb://./pos_server/data/pos_dev.duckdb"
    require_open_register_for_payment: bool = False
