''' Token and label table grammar '''

import pyparsing as pp


atom = pp.Regex(r'\S+')
program = pp.ZeroOrMore(atom)

label_name = pp.Regex(r'\S+')
label_index = pp.Regex('[0-9]+').set_parse_action(lambda r: int(r[0]))
label_entry = pp.Group(label_name + label_index)
label_table = pp.ZeroOrMore(label_entry)
