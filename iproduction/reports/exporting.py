"""CSV export of report rows"""
import csv
from decimal import Decimal

from django.http import HttpResponse

from iproduction.core.utils import json_safe


def wants_csv(request):
    return request.query_params.get('export', '').lower() == 'csv'


def csv_response(filename, columns, rows):
    """
    text/csv attachment with a UTF-8 BOM (so spreadsheet apps detect the
    encoding), a header row and one line per row.

    columns: list of (key, header) pairs picked from each row dict.
    """
    response = HttpResponse(content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    response.write('\ufeff')
    writer = csv.writer(response)
    writer.writerow([header for _, header in columns])
    for row in rows:
        writer.writerow([_cell(row.get(key)) for key, _ in columns])
    return response


def _cell(value):
    if value is None:
        return ''
    if isinstance(value, Decimal):
        return str(value)
    return json_safe(value)
