"""Shared fixtures: an app on in-memory SQLite with a fresh schema per test."""

import pytest

from devtracker import create_app
from devtracker.extensions import db as _db
from devtracker.models import CalculatorUnitType, UnitType


@pytest.fixture()
def app():
    app = create_app("config.TestingConfig")
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def db(app):
    return _db


@pytest.fixture()
def unit_type(db):
    """A 1000 sq ft unit type."""
    ut = UnitType(name="Type K", square_footage=1000, bedrooms=2, lock_off_flex_rooms=0)
    db.session.add(ut)
    db.session.commit()
    return ut


@pytest.fixture()
def calculator_unit_type(db):
    ut = CalculatorUnitType(name="Studio Apartment", square_footage=750, bedrooms=0)
    db.session.add(ut)
    db.session.commit()
    return ut


@pytest.fixture()
def reference_costs():
    """The reference unit: 100/sqft hard, 20k soft, 10k land, 5k lawyer, auto sales."""
    return {
        "hard_costs": "100",
        "hard_costs_method": "perSqFt",
        "soft_costs": "20000",
        "soft_costs_method": "perUnit",
        "land_costs": "10000",
        "land_costs_method": "perUnit",
        "contingency_costs": "0",
        "contingency_costs_method": "perUnit",
        "sales_costs": "0",
        "sales_costs_method": "perUnit",
        "lawyer_fees": "5000",
        "lawyer_fees_method": "perUnit",
    }
