from pydantic import BaseModel


class ProductRead(BaseModel):
    id: str
    name: str
    unit: str

    class Config:
        from_attributes = True
