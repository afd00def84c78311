# app/models.py
"""SQLAlchemy ORM model for the imported listings table.

Column names follow the `imoveis` table consumed downstream.
"""
from sqlalchemy import Column, Integer, Text, Numeric, Index
from .db import Base

class Imovel(Base):
    __tablename__ = "imoveis"
    id = Column(Integer, primary_key=True)
    descricao = Column(Text)
    tipo = Column(Text, nullable=False)
    finalidade = Column(Text, nullable=False)
    qtd_quartos = Column(Integer, nullable=False, default=0)
    qtd_banheiros = Column(Integer, nullable=False, default=0)
    qtd_vagas = Column(Integer, nullable=False, default=0)
    preco = Column(Numeric(14, 2, asdecimal=False), nullable=False, default=0)
    area_imovel = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    link = Column(Text)
    bairro = Column(Text, nullable=False)
    cidade = Column(Text, nullable=False)
    ref = Column(Text)

Index("idx_imoveis_cidade_bairro", Imovel.cidade, Imovel.bairro)
Index("idx_imoveis_ref", Imovel.ref)
