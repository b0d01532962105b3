import pathlib
import unittest
from unittest import mock

from car.config import ConfigProvider
from car.errors import ConfigReadError, InvalidArgument, UnsupportedFormat
from car.models import ArchiveFormat, CompressionCodec
from car.resolver import resolve, split_list


def _config(**flags):
    flags.setdefault('configfilename', '')
    with mock.patch.dict('os.environ', {}, clear=True):
        return ConfigProvider.load(flags=flags)


class SplitListTests(unittest.TestCase):
    """
    Tests for resolver.split_list
    """
    def test_split(self):
        self.assertEqual(('go', 'tmp', 'bak'), split_list('go,tmp,bak'))

    def test_empty(self):
        self.assertEqual((), split_list(''))

    def test_single(self):
        self.assertEqual(('go',), split_list('go'))


class ResolveTests(unittest.TestCase):
    """
    Tests for resolver.resolve
    """
    def test_tar_defaults(self):
        plan = resolve(
            _config(format='tar', type=''),
            'out.tar',
            ['a.txt', 'b.txt'],
        )
        self.assertIs(ArchiveFormat.TAR, plan.format)
        self.assertIsNone(plan.codec)
        self.assertEqual(pathlib.Path('out.tar'), plan.destination)
        self.assertEqual(
            (pathlib.Path('a.txt'), pathlib.Path('b.txt')),
            plan.sources,
        )
        self.assertFalse(plan.use_full_path)
        self.assertTrue(plan.filter.is_empty)
        self.assertTrue(plan.attributes.is_empty)

    def test_format_zip(self):
        plan = resolve(_config(format='zip'), 'out.zip', ['a.txt'])
        self.assertIs(ArchiveFormat.ZIP, plan.format)

    def test_format_defaults_to_tar(self):
        for value in ['', 'tar', 'ZIP', 'Zip', 'rar', '7z']:
            with self.subTest(value=value):
                plan = resolve(_config(format=value), 'out', ['a.txt'])
                self.assertIs(ArchiveFormat.TAR, plan.format)

    def test_type(self):
        plan = resolve(_config(type='bz2'), 'out.tar.bz2', ['a.txt'])
        self.assertIs(CompressionCodec.BZIP2, plan.codec)

    def test_type_unsupported(self):
        for value in ['lz4', 'rar', 'zip']:
            with self.subTest(value=value):
                with self.assertRaises(UnsupportedFormat) as ctx:
                    resolve(_config(type=value), 'out.tar', ['a.txt'])
                self.assertEqual(value, ctx.exception.value)
                self.assertIn(value, str(ctx.exception))

    def test_type_ignored_for_zip(self):
        plan = resolve(_config(format='zip', type='lz4'), 'out.zip', ['a.txt'])
        self.assertIs(ArchiveFormat.ZIP, plan.format)
        self.assertIsNone(plan.codec)

    def test_filter(self):
        plan = resolve(
            _config(**{
                'exclude-ext': 'go,tmp,bak',
                'include-ext': 'txt',
                'exclude-anchored': 'build',
                'include-anchored': 'src',
            }),
            'out.tar',
            ['a.txt'],
        )
        self.assertEqual(('go', 'tmp', 'bak'), plan.filter.exclude_extensions)
        self.assertEqual(('txt',), plan.filter.include_extensions)
        self.assertEqual('build', plan.filter.exclude_anchor)
        self.assertEqual('src', plan.filter.include_anchor)

    def test_filter_kept_for_zip(self):
        plan = resolve(
            _config(format='zip', **{'exclude-ext': 'tmp'}),
            'out.zip',
            ['a.txt'],
        )
        self.assertEqual(('tmp',), plan.filter.exclude_extensions)

    def test_attributes(self):
        plan = resolve(
            _config(owner='0', group='100', mode='0644'),
            'out.tar',
            ['a.txt'],
        )
        self.assertEqual(0, plan.attributes.owner)
        self.assertEqual(100, plan.attributes.group)
        self.assertEqual(0o644, plan.attributes.mode)

    def test_attributes_unset(self):
        plan = resolve(_config(group='5'), 'out.tar', ['a.txt'])
        self.assertIsNone(plan.attributes.owner)
        self.assertEqual(5, plan.attributes.group)
        self.assertIsNone(plan.attributes.mode)

    def test_attributes_dropped_for_zip(self):
        plan = resolve(
            _config(format='zip', owner='1000', group='1000', mode='0600'),
            'out.zip',
            ['a.txt'],
        )
        self.assertTrue(plan.attributes.is_empty)

    def test_attributes_negative(self):
        self.assertRaises(
            InvalidArgument,
            resolve,
            _config(mode='-1'),
            'out.tar',
            ['a.txt'],
        )

    def test_use_full_path(self):
        plan = resolve(_config(usefullpath=True), 'out.tar', ['dir/a.txt'])
        self.assertTrue(plan.use_full_path)

    def test_no_sources(self):
        self.assertRaises(InvalidArgument, resolve, _config(), 'out.tar', [])

    def test_no_destination(self):
        self.assertRaises(InvalidArgument, resolve, _config(), '', ['a.txt'])

    def test_empty_source(self):
        self.assertRaises(InvalidArgument, resolve, _config(), 'out.tar', ['a.txt', ''])

    def test_config_error_propagates(self):
        config = mock.MagicMock()
        config.get_string.side_effect = ConfigReadError('format is not a str setting')
        self.assertRaises(
            ConfigReadError,
            resolve,
            config,
            'out.tar',
            ['a.txt'],
        )

    def test_no_config_read_for_invalid_arguments(self):
        config = mock.MagicMock()
        self.assertRaises(InvalidArgument, resolve, config, 'out.tar', [])
        config.get_string.assert_not_called()

    def test_does_not_touch_filesystem(self):
        # Sources that don't exist are the backend's problem
        plan = resolve(_config(), '/nonexistent/out.tar', ['/nonexistent/a.txt'])
        self.assertEqual(pathlib.Path('/nonexistent/out.tar'), plan.destination)


if __name__ == '__main__':
    unittest.main()  # pragma: no cover
