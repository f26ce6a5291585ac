# storefront/crud/base.py
from typing import TypeVar, Generic, Type, Any, Optional, Dict
from sqlalchemy.orm import Session
from pydantic import BaseModel
from storefront.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchema = TypeVar("CreateSchema", bound=BaseModel)
UpdateSchema = TypeVar("UpdateSchema", bound=BaseModel)

class CRUDBase(Generic[ModelType, CreateSchema, UpdateSchema]):
    def __init__(self, model: Type[ModelType]): self.model = model

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        return db.get(self.model, id)

    def create(self, db: Session, obj_in: CreateSchema, *, commit: bool = True) -> ModelType:
        obj = self.model(**obj_in.model_dump())
        db.add(obj)
        if commit:
            db.commit(); db.refresh(obj)
        else:
            db.flush()
        return obj

    def update(self, db: Session, db_obj: ModelType, obj_in: UpdateSchema | Dict[str, Any], *, commit: bool = True) -> ModelType:
        data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        for f, v in data.items(): setattr(db_obj, f, v)
        db.add(db_obj)
        if commit:
            db.commit(); db.refresh(db_obj)
        else:
            db.flush()
        return db_obj
