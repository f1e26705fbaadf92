"""Unit tests for the incremental CSV tokenizer."""

from krisis.tokenizer import CsvTokenizer


def _tokenize(text, chunk_size=None):
    tokenizer = CsvTokenizer()
    rows = []
    if chunk_size is None:
        rows.extend(tokenizer.feed(text))
    else:
        for start in range(0, len(text), chunk_size):
            rows.extend(tokenizer.feed(text[start:start + chunk_size]))
    rows.extend(tokenizer.close())
    return tokenizer, rows


class TestCsvTokenizer:
    def test_header_and_rows(self):
        tokenizer, rows = _tokenize("Company,Role\nGoogle,SWE\nMeta,EM\n")
        assert tokenizer.header == ["Company", "Role"]
        assert [r.fields for r in rows] == [["Google", "SWE"], ["Meta", "EM"]]
        assert [r.number for r in rows] == [1, 2]
        assert tokenizer.errors == []

    def test_quoted_fields_across_tiny_chunks(self):
        text = 'Company,Notes\r\n"Acme, Inc.","said ""hi""\r\nthen left"\r\nMeta,ok\r\n'
        tokenizer, rows = _tokenize(text, chunk_size=1)
        assert [r.fields for r in rows] == [
            ["Acme, Inc.", 'said "hi"\r\nthen left'],
            ["Meta", "ok"],
        ]
        assert tokenizer.errors == []

    def test_last_line_without_newline(self):
        _, rows = _tokenize("Company,Role\nGoogle,SWE")
        assert [r.fields for r in rows] == [["Google", "SWE"]]

    def test_blank_lines_skipped(self):
        _, rows = _tokenize("\nCompany,Role\n\nGoogle,SWE\n   \n\nMeta,EM\n")
        assert [r.fields for r in rows] == [["Google", "SWE"], ["Meta", "EM"]]
        assert [r.number for r in rows] == [1, 2]

    def test_field_count_mismatch_reported_but_delivered(self):
        tokenizer, rows = _tokenize("A,B,C\n1,2\n1,2,3,4\n")
        assert [r.fields for r in rows] == [["1", "2"], ["1", "2", "3", "4"]]
        assert [e.row for e in tokenizer.errors] == [1, 2]
        assert "Too few fields" in tokenizer.errors[0].message
        assert "Too many fields" in tokenizer.errors[1].message
        assert all(e.field is None for e in tokenizer.errors)

    def test_malformed_record_dropped(self):
        tokenizer, rows = _tokenize('A,B\n"abc"def,x\nok,fine\n')
        assert [r.fields for r in rows] == [["ok", "fine"]]
        assert [r.number for r in rows] == [2]
        assert len(tokenizer.errors) == 1
        assert tokenizer.errors[0].row == 1
        assert tokenizer.errors[0].message.startswith("Parse error")

    def test_unterminated_quote_at_end(self):
        tokenizer, rows = _tokenize('A,B\nok,fine\n"never closed,x\n')
        assert [r.fields for r in rows] == [["ok", "fine"]]
        assert len(tokenizer.errors) == 1
        assert tokenizer.errors[0].row == 2

    def test_quote_inside_unquoted_field_is_literal(self):
        text = 'Company,Role\nAcme 27" Displays,SWE\nGoogle,SWE\nMeta,EM\n'
        tokenizer, rows = _tokenize(text)
        assert [r.fields for r in rows] == [
            ['Acme 27" Displays', "SWE"],
            ["Google", "SWE"],
            ["Meta", "EM"],
        ]
        assert [r.number for r in rows] == [1, 2, 3]
        assert tokenizer.errors == []

    def test_malformed_row_does_not_swallow_following_rows(self):
        text = 'A,B\n"abc"def,x"\nok,fine\nalso,fine\n'
        tokenizer, rows = _tokenize(text, chunk_size=4)
        assert [r.fields for r in rows] == [["ok", "fine"], ["also", "fine"]]
        assert [e.row for e in tokenizer.errors] == [1]

    def test_malformed_header_keeps_its_columns(self):
        tokenizer, rows = _tokenize('"Company"x,Role\nGoogle,SWE\nMeta,EM\n')
        assert tokenizer.header == ["Companyx", "Role"]
        assert [r.fields for r in rows] == [["Google", "SWE"], ["Meta", "EM"]]
        assert [r.number for r in rows] == [1, 2]
        assert len(tokenizer.errors) == 1
        assert tokenizer.errors[0].row == 0
