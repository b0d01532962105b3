import unittest

from car.filters import is_allowed, matches_anchor, matches_extension, normalize
from car.models import FilterRule


class NormalizeTests(unittest.TestCase):
    """
    Tests for filters.normalize
    """
    def test_strips_leading_dot(self):
        self.assertEqual('dir/a.txt', normalize('./dir/a.txt'))

    def test_collapses_separators(self):
        self.assertEqual('dir/sub/a.txt', normalize('dir//sub/../sub/a.txt'))


class MatchesAnchorTests(unittest.TestCase):
    """
    Tests for filters.matches_anchor
    """
    def test_empty_anchor(self):
        self.assertFalse(matches_anchor('dir/a.txt', ''))

    def test_exact(self):
        self.assertTrue(matches_anchor('dir/a.txt', 'dir/a.txt'))

    def test_prefix(self):
        self.assertTrue(matches_anchor('dir/sub/a.txt', 'dir'))
        self.assertTrue(matches_anchor('dir/sub/a.txt', 'dir/sub/'))

    def test_prefix_respects_component_boundary(self):
        self.assertFalse(matches_anchor('directory/a.txt', 'dir'))

    def test_not_anchored_in_middle(self):
        self.assertFalse(matches_anchor('other/dir/a.txt', 'dir'))

    def test_glob(self):
        self.assertTrue(matches_anchor('build/x/a.o', 'bu*'))
        self.assertTrue(matches_anchor('logs/2020.log', 'logs/*.log'))
        self.assertFalse(matches_anchor('src/logs/2020.log', 'logs/*.log'))


class MatchesExtensionTests(unittest.TestCase):
    """
    Tests for filters.matches_extension
    """
    def test_match(self):
        self.assertTrue(matches_extension('dir/main.go', ['go', 'tmp']))

    def test_no_match(self):
        self.assertFalse(matches_extension('dir/main.py', ['go', 'tmp']))

    def test_leading_dot_ignored(self):
        self.assertTrue(matches_extension('a.tmp', ['.tmp']))

    def test_multi_part(self):
        self.assertTrue(matches_extension('backup.tar.gz', ['tar.gz']))

    def test_extension_is_not_a_name_suffix(self):
        self.assertFalse(matches_extension('ago', ['go']))

    def test_empty_entries_ignored(self):
        self.assertFalse(matches_extension('a.txt', ['']))


class IsAllowedTests(unittest.TestCase):
    """
    Tests for filters.is_allowed precedence
    """
    def test_empty_rule_allows_everything(self):
        self.assertTrue(is_allowed(FilterRule(), 'any/file.bin'))

    def test_exclude_extension(self):
        rule = FilterRule(exclude_extensions=('tmp',))
        self.assertFalse(is_allowed(rule, 'a.tmp'))
        self.assertTrue(is_allowed(rule, 'a.txt'))

    def test_include_extension(self):
        rule = FilterRule(include_extensions=('txt',))
        self.assertTrue(is_allowed(rule, 'a.txt'))
        self.assertFalse(is_allowed(rule, 'a.md'))

    def test_exclude_extension_wins_over_include_extension(self):
        rule = FilterRule(exclude_extensions=('txt',), include_extensions=('txt',))
        self.assertFalse(is_allowed(rule, 'a.txt'))

    def test_exclude_anchor_wins_over_include_anchor(self):
        rule = FilterRule(exclude_anchor='dir/private', include_anchor='dir')
        self.assertFalse(is_allowed(rule, 'dir/private/a.txt'))
        self.assertTrue(is_allowed(rule, 'dir/public/a.txt'))

    def test_include_anchor_wins_over_exclude_extension(self):
        rule = FilterRule(exclude_extensions=('tmp',), include_anchor='keep')
        self.assertTrue(is_allowed(rule, 'keep/a.tmp'))
        self.assertFalse(is_allowed(rule, 'other/a.tmp'))

    def test_include_anchor_only(self):
        rule = FilterRule(include_anchor='keep')
        self.assertTrue(is_allowed(rule, 'keep/a.txt'))
        self.assertFalse(is_allowed(rule, 'other/a.txt'))

    def test_include_anchor_or_include_extension(self):
        rule = FilterRule(include_anchor='keep', include_extensions=('md',))
        self.assertTrue(is_allowed(rule, 'keep/a.txt'))
        self.assertTrue(is_allowed(rule, 'other/a.md'))
        self.assertFalse(is_allowed(rule, 'other/a.txt'))

    def test_exclude_anchor_matches_arcname(self):
        rule = FilterRule(exclude_anchor='dir/sub')
        self.assertFalse(is_allowed(rule, '/tmp/work/dir/sub/c.txt', 'dir/sub/c.txt'))
        self.assertTrue(is_allowed(rule, '/tmp/work/dir/a.txt', 'dir/a.txt'))
        self.assertTrue(is_allowed(rule, '/tmp/work/dir/sub/c.txt'))

    def test_include_anchor_matches_arcname(self):
        rule = FilterRule(include_anchor='dir/keep', exclude_extensions=('tmp',))
        self.assertTrue(is_allowed(rule, '/tmp/work/dir/keep/a.tmp', 'dir/keep/a.tmp'))
        self.assertFalse(is_allowed(rule, '/tmp/work/dir/a.tmp', 'dir/a.tmp'))

    def test_anchor_matches_disk_path_too(self):
        rule = FilterRule(exclude_anchor='src/gen')
        self.assertFalse(is_allowed(rule, 'src/gen/a.py', 'a.py'))


if __name__ == '__main__':
    unittest.main()  # pragma: no cover
