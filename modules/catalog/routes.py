"""
Catalog Module - Routes
=========================
Public product browsing plus owner/admin product management.
Create and update accept multipart form data with an optional `image` file.
"""

import os
from typing import Optional

from fastapi import APIRouter, Depends, Form, File, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import NotFoundError
from modules.auth.deps import require_login
from modules.catalog.service import product_service

router = APIRouter(prefix="/api/products", tags=["products"])


# ==========================================
# 🛍️ Browse
# ==========================================

@router.get("")
async def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    minPrice: Optional[str] = None,
    maxPrice: Optional[str] = None,
    sort: Optional[str] = None,
    db: Session = Depends(get_db),
):
    products = product_service.list_public(
        db, category=category, search=search,
        min_price=minPrice, max_price=maxPrice, sort=sort,
    )
    return {"success": True, "count": len(products), "data": [p.to_dict() for p in products]}


@router.get("/my/products")
async def my_products(db: Session = Depends(get_db), user=Depends(require_login)):
    products = product_service.list_by_owner(db, user.id)
    return {
        "success": True,
        "count": len(products),
        "data": [p.to_dict(include_owner=False) for p in products],
    }


@router.get("/filter/categories")
async def list_categories(db: Session = Depends(get_db)):
    return {"success": True, "data": product_service.list_categories(db)}


@router.get("/{product_id}/image")
async def product_image(product_id: int, db: Session = Depends(get_db)):
    product = product_service.get_by_id(db, product_id)
    if not product or not product.image_path or not os.path.isfile(product.image_path):
        raise NotFoundError("Image not found")
    return FileResponse(product.image_path, media_type=product.image_content_type or "application/octet-stream")


@router.get("/{product_id}")
async def get_product(product_id: int, db: Session = Depends(get_db)):
    product = product_service.get_or_404(db, product_id)
    return {"success": True, "data": product.to_dict()}


# ==========================================
# ✏️ Manage (owner or admin)
# ==========================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    discount: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    image_link: Optional[str] = Form(None, alias="imageLink"),
    is_public: Optional[str] = Form(None, alias="isPublic"),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    user=Depends(require_login),
):
    data = {
        "name": name, "description": description, "price": price,
        "category": category, "stock": stock, "discount": discount,
        "tags": tags, "image": image_link, "is_public": is_public,
    }
    product = product_service.create(db, user, data, image_file=image)
    db.commit()
    db.refresh(product)
    return {
        "success": True,
        "message": "Product created successfully",
        "data": product.to_dict(),
    }


@router.put("/{product_id}")
async def update_product(
    product_id: int,
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    stock: Optional[str] = Form(None),
    discount: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    image_link: Optional[str] = Form(None, alias="imageLink"),
    is_public: Optional[str] = Form(None, alias="isPublic"),
    image: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    user=Depends(require_login),
):
    data = {
        "name": name, "description": description, "price": price,
        "category": category, "stock": stock, "discount": discount,
        "tags": tags, "image": image_link, "is_public": is_public,
    }
    product = product_service.update(db, user, product_id, data, image_file=image)
    db.commit()
    db.refresh(product)
    return {
        "success": True,
        "message": "Product updated successfully",
        "data": product.to_dict(),
    }


@router.delete("/{product_id}")
async def delete_product(product_id: int, db: Session = Depends(get_db), user=Depends(require_login)):
    product_service.delete(db, user, product_id)
    db.commit()
    return {"success": True, "message": "Product deleted successfully", "data": None}
