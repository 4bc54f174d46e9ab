CONFIG = {
    'config': [],

    # Active environment, values under `environments.<env>` override
    # top level values.
    'env': None,

    'logging': {
        'dir': '~/.geotypes_logs',
        'file': 'geotypes_{date}.log',
        'level': 'DEBUG',
        'console_level': 'WARNING',
        'backup_count': 7,
    },

    'environments': {
        'dev': {
            'logging.console_level': 'DEBUG',
        },
        'test': {
            'logging.backup_count': 1,
        },
    },
}


# Describes which configuration keys are objects (have nested keys). Only
# object keys can be extended with new keys from environment variables.
SCHEMA = {
    'type': 'object',
    'items': {
        'config': {'type': 'array'},
        'env': {'type': 'string'},
        'logging': {
            'type': 'object',
            'items': {
                'dir': {'type': 'path', 'default': '~/.geotypes_logs'},
                'file': {'type': 'string', 'default': 'geotypes_{date}.log'},
                'level': {'type': 'string', 'default': 'DEBUG'},
                'console_level': {'type': 'string', 'default': 'WARNING'},
                'backup_count': {'type': 'integer', 'default': 7},
            },
        },
        'environments': {
            'type': 'object',
            'keys': {'type': 'string'},
            'values': {'type': 'object'},
        },
    },
}
