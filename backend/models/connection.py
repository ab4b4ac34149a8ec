"""Pydantic schemas for live database connection requests."""
from typing import Optional
from urllib.parse import quote_plus
from pydantic import BaseModel, Field

from models.schema import DBType

DEFAULT_PORTS = {
    DBType.MYSQL: 3306,
    DBType.POSTGRESQL: 5432,
    DBType.ORACLE: 1521,
    DBType.SQLSERVER: 1433,
}

_DRIVERS = {
    DBType.MYSQL: "mysql+pymysql",
    DBType.POSTGRESQL: "postgresql+psycopg2",
    DBType.ORACLE: "oracle+oracledb",
    DBType.SQLSERVER: "mssql+pymssql",
}


class ConnectionRequest(BaseModel):
    db_type: DBType = Field(..., description="Database engine type")
    host: str = Field("localhost", description="Database host")
    port: Optional[int] = Field(None, description="Database port (engine default when omitted)")
    database: str = Field(..., description="Database name (Oracle: service name)")
    username: str = Field("", description="Username")
    password: str = Field("", description="Password")

    @property
    def effective_port(self) -> int:
        return self.port or DEFAULT_PORTS[self.db_type]

    def get_sqlalchemy_url(self) -> str:
        driver = _DRIVERS[self.db_type]
        auth = f"{quote_plus(self.username)}:{quote_plus(self.password)}@" if self.username else ""
        if self.db_type == DBType.ORACLE:
            return f"{driver}://{auth}{self.host}:{self.effective_port}/?service_name={self.database}"
        return f"{driver}://{auth}{self.host}:{self.effective_port}/{self.database}"
