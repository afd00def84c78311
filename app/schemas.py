# app/schemas.py
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any

class NormalizedListing(BaseModel):
    description: Optional[str] = None
    property_type: str
    transaction_type: str
    bedroom_count: int = Field(0, ge=0)
    bathroom_count: int = Field(0, ge=0)
    parking_count: int = Field(0, ge=0)
    price: float = Field(0.0, ge=0)
    area: float = Field(0.0, ge=0)
    detail_url: Optional[str] = None
    neighborhood: str
    city: str
    external_ref: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        """Column mapping for the `imoveis` table."""
        return {
            "descricao": self.description,
            "tipo": self.property_type,
            "finalidade": self.transaction_type,
            "qtd_quartos": self.bedroom_count,
            "qtd_banheiros": self.bathroom_count,
            "qtd_vagas": self.parking_count,
            "preco": self.price,
            "area_imovel": self.area,
            "link": self.detail_url,
            "bairro": self.neighborhood,
            "cidade": self.city,
            "ref": self.external_ref,
        }

class ImportResult(BaseModel):
    imported_count: int
    skipped_count: int = 0

class ImportOut(BaseModel):
    message: str
    importedCount: int
    skippedCount: int = 0

class ErrorOut(BaseModel):
    kind: str
    message: str
