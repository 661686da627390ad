"""
Output generation for analysis reports.
"""
from nr_advisor.outputs.summary import render_text, report_to_dict, write_json

__all__ = ['render_text', 'report_to_dict', 'write_json']
