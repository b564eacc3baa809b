# Collection Names
COLLECTIONS = {
    'clinics': 'clinics',
    'common': '_common',
    'modules': 'modules',
    'rooms': 'rooms',
    'appliances': 'appliances',
    'records': 'records',
    'cycle_counters': 'cycle_counters',
    'server_time': '_time',
}

# Collection Structure Documentation
COLLECTION_SCHEMAS = {
    'modules': {
        'fields': ['typeKey', 'typeLabel', 'moduleName', 'description', 'moduleIndex', 'official', 'setupConfig', 'createdBy', 'createdAt', 'updatedAt'],
        'required': ['typeKey', 'typeLabel'],
        'indexes': ['moduleIndex']
    },
    'rooms': {
        'fields': ['roomName', 'applianceList'],
        'required': ['applianceList'],
        'indexes': []
    },
    'appliances': {
        'fields': ['applianceName', 'typeKey', 'typeLabel', 'official', 'setupConfigValues', 'recordFields', 'createdBy', 'createdAt'],
        'required': ['applianceName', 'typeKey', 'typeLabel', 'setupConfigValues'],
        'indexes': ['typeKey']
    },
    'records': {
        'fields': ['values', 'username', 'userID', 'clinic', 'cycleNumber', 'createdAt'],
        'required': ['values', 'userID', 'createdAt'],
        'indexes': ['createdAt']
    },
    'cycle_counters': {
        'fields': ['cycleCount', 'updatedAt'],
        'required': ['cycleCount', 'updatedAt'],
        'indexes': []
    },
}

def modules_path() -> str:
    return f"{COLLECTIONS['clinics']}/{COLLECTIONS['common']}/{COLLECTIONS['modules']}"


def module_path(type_key: str) -> str:
    return f"{modules_path()}/{type_key}"


def rooms_path(clinic_id: str) -> str:
    return f"{COLLECTIONS['clinics']}/{clinic_id}/{COLLECTIONS['rooms']}"


def room_path(clinic_id: str, room_id: str) -> str:
    return f"{rooms_path(clinic_id)}/{room_id}"


def appliances_path(clinic_id: str, room_id: str) -> str:
    return f"{room_path(clinic_id, room_id)}/{COLLECTIONS['appliances']}"


def appliance_path(clinic_id: str, room_id: str, appliance_id: str) -> str:
    return f"{appliances_path(clinic_id, room_id)}/{appliance_id}"


def records_path(clinic_id: str, room_id: str, appliance_id: str) -> str:
    return f"{appliance_path(clinic_id, room_id, appliance_id)}/{COLLECTIONS['records']}"


def cycle_counters_path(clinic_id: str) -> str:
    return f"{COLLECTIONS['clinics']}/{clinic_id}/{COLLECTIONS['cycle_counters']}"


def cycle_counter_path(clinic_id: str, unit_id: str) -> str:
    return f"{cycle_counters_path(clinic_id)}/{unit_id}"
