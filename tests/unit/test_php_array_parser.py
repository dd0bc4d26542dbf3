import unittest

from locale_lint.php_array_parser import parse_php_array


def parse(text, root_prefix=''):
    return {entry.key: entry.value for entry in parse_php_array(text, 'en', root_prefix)}


class TestPhpArrayParser(unittest.TestCase):

    def test_short_array_syntax_with_nesting(self):
        text = """<?php
return [
    'welcome' => 'Welcome, :name',
    'auth' => [
        'failed' => "These credentials do not match.",
        'throttle' => 'Too many attempts.',
    ],
];
"""
        self.assertEqual(parse(text, 'messages'), {
            'messages.welcome': 'Welcome, :name',
            'messages.auth.failed': 'These credentials do not match.',
            'messages.auth.throttle': 'Too many attempts.',
        })

    def test_long_array_syntax(self):
        text = "<?php return array('a' => array('b' => 'c'), 'd' => 'e');"
        self.assertEqual(parse(text), {'a.b': 'c', 'd': 'e'})

    def test_comments_are_ignored(self):
        text = """<?php
// 'ignored' => 'line comment',
return [
    /* 'also' => 'ignored', */
    'kept' => 'yes', // trailing comment
];
"""
        self.assertEqual(parse(text), {'kept': 'yes'})

    def test_single_quoted_escapes(self):
        text = r"<?php return ['q' => 'It\'s a \\ backslash \n literal'];"
        self.assertEqual(parse(text), {'q': "It's a \\ backslash \\n literal"})

    def test_double_quoted_escapes(self):
        text = r'<?php return ["q" => "Say \"hi\"\nand \$5 \\ done"];'
        self.assertEqual(parse(text), {'q': 'Say "hi"\nand $5 \\ done'})

    def test_escaped_backslash_before_n_decodes_in_one_pass(self):
        text = r'<?php return ["path" => "C:\\new"];'
        self.assertEqual(parse(text), {'path': 'C:\\new'})

    def test_non_string_values_are_skipped_with_exact_depth(self):
        text = """<?php
return [
    'count' => 3,
    'flags' => [1, 2, [3, 4]],
    'callback' => fn($x) => strtoupper($x),
    'call' => sprintf('%s (%d)', 'x', 2),
    'after' => 'still parsed',
];
"""
        self.assertEqual(parse(text), {'after': 'still parsed'})

    def test_list_items_without_keys_are_skipped(self):
        text = "<?php return ['plain', 'k' => 'v', 42];"
        self.assertEqual(parse(text), {'k': 'v'})

    def test_unterminated_string_keeps_partial_results(self):
        text = "<?php return ['first' => 'one', 'second' => 'never closed"
        self.assertEqual(parse(text), {'first': 'one'})

    def test_unterminated_array_keeps_partial_results(self):
        text = "<?php return ['first' => 'one', 'nested' => ['inner' => 'two',"
        self.assertEqual(parse(text), {'first': 'one', 'nested.inner': 'two'})

    def test_file_without_return_array_yields_nothing(self):
        self.assertEqual(parse("<?php echo 'hello';"), {})

    def test_round_trip_of_written_values(self):
        values = {
            'quote': 'She said "yes"',
            'apostrophe': "It's here",
            'backslash': 'a\\b',
        }
        body = ",\n".join(
            "    '{}' => '{}'".format(key, value.replace('\\', '\\\\').replace("'", "\\'"))
            for key, value in values.items()
        )
        text = "<?php\nreturn [\n" + body + "\n];\n"

        self.assertEqual(parse(text), values)


if __name__ == '__main__':
    unittest.main()
