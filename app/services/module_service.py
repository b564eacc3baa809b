from typing import Any, Dict, List, Optional, Tuple, Union
import logging

from ..core.config import settings
from ..database.database_service import database_service, TransactionAbort
from ..database.collections import module_path, modules_path
from ..models.clinic_models import ModuleDefinition
from ..models.schema_models import FieldSchema, parse_field_schemas
from ..models.result_models import ModuleError, ModuleErrorCode
from .key_service import derive_key

logger = logging.getLogger(__name__)


class KeySpaceExhausted(TransactionAbort):
    pass


class ModuleService:
    def __init__(self, db=None, max_attempts: Optional[int] = None):
        self.db = db or database_service
        self.max_attempts = max_attempts or settings.MODULE_KEY_MAX_ATTEMPTS

    async def create_module(
        self,
        type_label: str,
        setup_schema: Optional[List[Union[FieldSchema, Dict[str, Any]]]] = None,
        description: str = "",
        official: bool = False,
        module_index: int = 0,
        created_by: Optional[str] = None,
    ) -> Tuple[bool, Optional[ModuleDefinition], Optional[ModuleError]]:
        """Create a catalog module under clinics/_common/modules/{typeKey}.

        If the derived key is taken, -2, -3, ... are tried inside the same
        transaction until a free key is found.
        """
        label = (type_label or "").strip()
        if not label:
            return False, None, ModuleError(
                code=ModuleErrorCode.LABEL_REQUIRED,
                message="Please enter a module name.",
            )

        base = derive_key(label, prefix="module")
        template = ModuleDefinition(
            type_key=base,
            type_label=label,
            description=(description or "").strip(),
            module_index=module_index,
            official=official,
            setup_schema=parse_field_schemas(setup_schema or []),
            created_by=created_by,
        )
        max_attempts = self.max_attempts
        timestamp = self.db.server_timestamp()

        def _create(txn):
            candidate = base
            for i in range(max_attempts):
                if txn.get(module_path(candidate)) is None:
                    module = template.model_copy(update={'type_key': candidate})
                    txn.create(module_path(candidate), {
                        **module.to_firestore(),
                        'createdAt': timestamp,
                        'updatedAt': timestamp,
                    })
                    return module
                candidate = f"{base}-{i + 2}"
            raise KeySpaceExhausted(base)

        try:
            module = await self.db.run_transaction(_create)
        except KeySpaceExhausted:
            return False, None, ModuleError(
                code=ModuleErrorCode.KEY_SPACE_EXHAUSTED,
                message="Unable to create module: too many similar names. Try a different name.",
            )
        except Exception as e:
            logger.error(f"Error creating module '{label}': {e}")
            return False, None, ModuleError(
                code=ModuleErrorCode.STORE_ERROR,
                message=f"Failed to create module: {e}",
                retryable=True,
            )

        logger.info(f"Created module '{module.type_key}' ({label})")
        return True, module, None

    async def get_module(self, type_key: str) -> Tuple[bool, Optional[ModuleDefinition], Optional[ModuleError]]:
        success, data, error = await self.db.get_document(modules_path(), type_key)
        if not success:
            return False, None, ModuleError(code=ModuleErrorCode.STORE_ERROR, message=error or "", retryable=True)
        if data is None:
            return False, None, ModuleError(code=ModuleErrorCode.NOT_FOUND, message=f"Module {type_key} not found")
        return True, ModuleDefinition.from_firestore(type_key, data), None

    async def list_modules(self) -> Tuple[bool, List[ModuleDefinition], Optional[str]]:
        success, docs, error = await self.db.query_documents(modules_path(), order_by='moduleIndex')
        if not success:
            return False, [], error
        return True, [ModuleDefinition.from_firestore(d.get('_doc_id'), d) for d in docs], None


module_service = ModuleService()
