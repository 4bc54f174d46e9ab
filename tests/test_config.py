import pathlib

import pytest

from geotypes.config import SCHEMA
from geotypes.core.config import CliArgs
from geotypes.core.config import EnvFile
from geotypes.core.config import EnvVars
from geotypes.core.config import KeyFormat
from geotypes.core.config import Path
from geotypes.core.config import PyDict
from geotypes.core.config import RawConfig
from geotypes.core.config import read_config
from geotypes.exceptions import ConfigLocked
from geotypes.exceptions import UnknownConfigSource


def _defaults() -> RawConfig:
    rc = RawConfig()
    rc.read([Path('geotypes', 'geotypes.config:CONFIG')])
    return rc


def test_envvars():
    config = EnvVars('envvars', {
        'GEOTYPES_LOGGING__LEVEL': 'INFO',
        'OTHER_LOGGING__LEVEL': 'ERROR',
    })
    config.read(SCHEMA)
    assert config.config == {
        ('logging', 'level'): 'INFO',
    }


def test_envvars_environment():
    config = EnvVars('envvars', {
        'GEOTYPES_DEV__LOGGING__LEVEL': 'INFO',
    })
    config.read(SCHEMA)
    assert config.config == {
        ('environments', 'dev', 'logging', 'level'): 'INFO',
    }


def test_defaults():
    rc = _defaults()
    assert rc.keys() == ['config', 'env', 'logging']
    assert rc.keys('logging') == [
        'dir',
        'file',
        'level',
        'console_level',
        'backup_count',
    ]
    assert rc.get('logging', 'level') == 'DEBUG'
    assert rc.get('logging', 'backup_count') == 7


def test_defaults_are_not_modified():
    from geotypes.config import CONFIG
    _defaults()
    assert 'environments' in CONFIG


def test_update_config_from_cli():
    rc = _defaults()
    rc.read([
        CliArgs('cliargs', [
            'logging.level=ERROR',
            'config=a.yml,b.yml',
        ]),
    ])
    assert rc.get('logging', 'level') == 'ERROR'
    assert rc.get('config', cast=list) == ['a.yml', 'b.yml']


def test_update_config_from_env():
    rc = _defaults()
    rc.read([
        EnvVars('envvars', {
            'GEOTYPES_LOGGING__BACKUP_COUNT': '3',
        }),
    ])
    assert rc.get('logging', 'backup_count') == '3'
    assert rc.get('logging', 'backup_count', cast=int) == 3
    assert rc.get('logging', 'backup_count', origin=True) == ('3', 'envvars')


def test_update_config_from_env_file(tmp_path: pathlib.Path):
    envfile = tmp_path / '.env'
    envfile.write_text(
        '# comment\n'
        '\n'
        'GEOTYPES_LOGGING__CONSOLE_LEVEL=ERROR\n'
        'not a variable\n'
    )
    rc = _defaults()
    rc.read([EnvFile('envfile', str(envfile))])
    assert rc.get('logging', 'console_level') == 'ERROR'


def test_missing_env_file(tmp_path: pathlib.Path):
    rc = _defaults()
    rc.read([EnvFile('envfile', str(tmp_path / '.env'))])
    assert rc.get('logging', 'console_level') == 'WARNING'


def test_custom_env():
    rc = _defaults()
    rc.read([
        EnvVars('envvars', {
            'GEOTYPES_ENV': 'dev',
        }),
    ])
    assert rc.get('logging', 'console_level') == 'DEBUG'


def test_custom_env_from_envvars():
    rc = _defaults()
    rc.read([
        EnvVars('envvars', {
            'GEOTYPES_ENV': 'prod',
            'GEOTYPES_PROD__LOGGING__LEVEL': 'ERROR',
        }),
    ])
    assert rc.get('logging', 'level') == 'ERROR'
    assert rc.get('logging', 'console_level') == 'WARNING'


def test_custom_env_priority():
    rc = _defaults()
    rc.read([
        PyDict('app', {
            'env': 'dev',
            'logging.console_level': 'ERROR',
        }),
    ])
    # Later sources win over environment values of earlier sources.
    assert rc.get('logging', 'console_level') == 'ERROR'
    assert rc.get('logging', 'level') == 'DEBUG'


def test_yaml_config(tmp_path: pathlib.Path):
    path = tmp_path / 'geotypes.yml'
    path.write_text(
        'logging:\n'
        '  level: INFO\n'
        '  backup_count: 3\n'
    )
    rc = _defaults()
    rc.read([Path('yaml', str(path))])
    assert rc.get('logging', 'level') == 'INFO'
    assert rc.get('logging', 'backup_count') == 3
    assert rc.get('logging', 'console_level') == 'WARNING'


def test_read_config(tmp_path: pathlib.Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv('GEOTYPES_LOGGING__LEVEL', 'WARNING')
    rc = read_config(['logging.console_level=ERROR'])
    assert [s.name for s in rc.sources] == ['geotypes', 'envfile', 'envvars', 'cliargs']
    assert rc.get('logging', 'level') == 'WARNING'
    assert rc.get('logging', 'console_level') == 'ERROR'


def test_read_config_extra_files(tmp_path: pathlib.Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / 'extra.yml'
    path.write_text('logging:\n  file: extra.log\n')
    rc = read_config([f'config={path}'])
    assert [s.name for s in rc.sources] == [
        'geotypes',
        str(path),
        'envfile',
        'envvars',
        'cliargs',
    ]
    assert rc.get('logging', 'file') == 'extra.log'


def test_fork():
    rc = _defaults()
    rc.lock()
    forked = rc.fork({'logging.level': 'INFO'})
    assert forked.get('logging', 'level') == 'INFO'
    assert rc.get('logging', 'level') == 'DEBUG'


def test_locked():
    rc = _defaults()
    rc.lock()
    with pytest.raises(ConfigLocked):
        rc.add('app', {'logging.level': 'INFO'})


def test_unknown_source():
    rc = _defaults()
    with pytest.raises(UnknownConfigSource):
        rc.read([PyDict('app', {})], after='missing')


def test_missing_option():
    rc = _defaults()
    assert rc.get('missing') is None
    assert rc.get('missing', default='x') == 'x'
    assert rc.get('missing', origin=True) == (None, '')


def test_dump():
    rc = _defaults()
    table = rc.dump('logging.level', file=None)
    assert table == [
        ('Origin', 'Name', 'Value'),
        ('--------', '-------------', '-----'),
        ('geotypes', 'logging.level', 'DEBUG'),
    ]


def test_dump_env():
    rc = _defaults()
    table = rc.dump('logging.level', fmt=KeyFormat.env, file=None)
    assert table[-1] == ('geotypes', 'GEOTYPES_LOGGING__LEVEL', 'DEBUG')
