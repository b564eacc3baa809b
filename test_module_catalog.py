import pytest

from app.database.collections import module_path, modules_path
from app.models.schema_models import FieldType
from app.models.result_models import ModuleErrorCode
from app.services.module_service import ModuleService

pytestmark = pytest.mark.asyncio


async def test_create_module_writes_catalog_entry(fake_db):
    service = ModuleService(db=fake_db)

    ok, module, error = await service.create_module(
        " Ultrasonic Bath ",
        setup_schema=[
            {"field": "Serial", "type": "string", "required": True},
            {"field": "Tank Litres", "type": "number"},
        ],
        description="Weekly foil test",
        created_by="uid-1",
    )

    assert ok, error
    assert module.type_key == "ultrasonic-bath"
    assert module.type_label == "Ultrasonic Bath"
    assert [s.type for s in module.setup_schema] == [FieldType.STRING, FieldType.NUMBER]

    stored = fake_db.docs[module_path("ultrasonic-bath")]
    assert stored["typeLabel"] == "Ultrasonic Bath"
    assert stored["setupConfig"][0] == {"field": "Serial", "type": "string", "required": True}
    assert stored["createdAt"] == fake_db.now
    assert stored["updatedAt"] == fake_db.now


async def test_taken_key_is_suffixed(fake_db):
    service = ModuleService(db=fake_db)

    keys = []
    for label in ("Water Line Test", "water line test", "WATER-LINE-TEST"):
        ok, module, _ = await service.create_module(label)
        assert ok
        keys.append(module.type_key)

    assert keys == ["water-line-test", "water-line-test-2", "water-line-test-3"]
    assert set(fake_db.children(modules_path())) == set(keys)


async def test_key_space_exhaustion(fake_db):
    service = ModuleService(db=fake_db, max_attempts=3)
    fake_db.put(module_path("aed"), {"typeLabel": "AED"})
    fake_db.put(module_path("aed-2"), {"typeLabel": "AED"})
    fake_db.put(module_path("aed-3"), {"typeLabel": "AED"})

    ok, module, error = await service.create_module("AED")

    assert not ok
    assert module is None
    assert error.code == ModuleErrorCode.KEY_SPACE_EXHAUSTED
    assert len(fake_db.children(modules_path())) == 3


async def test_blank_label_is_rejected(fake_db):
    ok, _, error = await ModuleService(db=fake_db).create_module("  ")
    assert not ok
    assert error.code == ModuleErrorCode.LABEL_REQUIRED
    assert fake_db.docs == {}


async def test_get_and_list_modules(fake_db):
    fake_db.put(module_path("autoclave"), {
        "moduleName": "Autoclave",
        "moduleIndex": 2,
        "official": True,
        "setupConfig": [{"field": "Serial", "type": "string", "required": True}],
    })
    fake_db.put(module_path("aed"), {"typeLabel": "AED", "moduleIndex": 1})
    service = ModuleService(db=fake_db)

    ok, module, _ = await service.get_module("autoclave")
    assert ok
    # Older catalog entries only carry moduleName
    assert module.type_label == "Autoclave"
    assert module.official is True
    assert module.setup_schema[0].required is True

    ok, _, error = await service.get_module("missing")
    assert not ok
    assert error.code == ModuleErrorCode.NOT_FOUND

    ok, modules, _ = await service.list_modules()
    assert ok
    assert [m.type_key for m in modules] == ["aed", "autoclave"]
