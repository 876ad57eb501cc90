"""
VibeCart - Demo Data Seeder
=============================
Seeds an admin, a shopper and a handful of products.

Usage:
    python scripts/seed.py          # Seed (existing rows are kept)
    python scripts/seed.py --reset  # Drop all data and reseed

Accounts (password for both: "password123"):
  admin@vibecart.dev   role=admin
  shopper@vibecart.dev role=user
"""

import sys
import os
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.database import SessionLocal, Base, engine
from common.security import hash_password
from modules.user.models import User
from modules.catalog.models import Product
from modules.cart.models import Cart, CartItem  # noqa

DEMO_PASSWORD = "password123"

USERS = [
    {"name": "Store Admin", "email": "admin@vibecart.dev", "role": "admin"},
    {"name": "Demo Shopper", "email": "shopper@vibecart.dev", "role": "user"},
]

PRODUCTS = [
    {"name": "Wireless Headphones", "category": "Electronics", "price": "79.99", "stock": 25, "discount": 10,
     "description": "Over-ear bluetooth headphones with 30 hour battery life.", "tags": ["audio", "bluetooth"]},
    {"name": "Mechanical Keyboard", "category": "Electronics", "price": "119.00", "stock": 4,
     "description": "Hot-swappable 75% keyboard with tactile switches.", "tags": ["keyboard"]},
    {"name": "Cotton T-Shirt", "category": "Clothing", "price": "15.50", "stock": 200,
     "description": "Heavyweight organic cotton tee, relaxed fit.", "tags": ["basics"]},
    {"name": "Trail Running Shoes", "category": "Sports", "price": "98.00", "stock": 0,
     "description": "Lightweight trail shoes with aggressive grip outsole.", "tags": ["running"]},
    {"name": "Ceramic Plant Pot", "category": "Home & Garden", "price": "22.00", "stock": 60,
     "description": "Glazed ceramic pot with drainage hole and saucer.", "tags": ["plants"]},
    {"name": "Python Cookbook", "category": "Books", "price": "42.75", "stock": 12,
     "description": "Recipes for mastering everyday programming tasks.", "tags": ["programming"]},
]


def seed(reset=False):
    if reset:
        print("Dropping all tables...")
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        print("\n[1/2] Users")
        users = {}
        for data in USERS:
            user = db.query(User).filter(User.email == data["email"]).first()
            if not user:
                user = User(**data, password_hash=hash_password(DEMO_PASSWORD))
                db.add(user)
                print(f"  + {data['role']}: {data['email']}")
            else:
                print(f"  = exists: {data['email']}")
            users[data["role"]] = user
        db.flush()

        print("\n[2/2] Products")
        owner = users["admin"]
        for data in PRODUCTS:
            if db.query(Product).filter(Product.name == data["name"]).first():
                print(f"  = exists: {data['name']}")
                continue
            fields = {k: v for k, v in data.items() if k != "tags"}
            fields["price"] = Decimal(fields["price"])
            product = Product(**fields, owner_id=owner.id)
            product.tags = data["tags"]
            db.add(product)
            print(f"  + {data['name']} ({data['category']}, stock={data['stock']})")

        db.commit()
        print("\nSeed complete.")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed(reset="--reset" in sys.argv)
