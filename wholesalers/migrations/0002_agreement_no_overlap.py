from django.db import migrations


SQLITE_OVERLAP = """
    SELECT RAISE(ABORT, 'overlapping wholesaler agreement')
    WHERE EXISTS (
        SELECT 1 FROM wholesaler_agreements
        WHERE user_id = NEW.user_id
          AND store_id = NEW.store_id
          AND (active_to IS NULL OR active_to > NEW.active_from)
          AND (NEW.active_to IS NULL OR active_from < NEW.active_to)
          {extra}
    );
"""


def add_overlap_guard(apps, schema_editor):
    vendor = schema_editor.connection.vendor
    if vendor == 'postgresql':
        schema_editor.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')
        schema_editor.execute(
            "ALTER TABLE wholesaler_agreements ADD CONSTRAINT agreement_no_overlap "
            "EXCLUDE USING gist (user_id WITH =, store_id WITH =, "
            "tstzrange(active_from, active_to, '[)') WITH &&)"
        )
    elif vendor == 'sqlite':
        schema_editor.execute(
            "CREATE TRIGGER agreement_no_overlap_insert "
            "BEFORE INSERT ON wholesaler_agreements BEGIN"
            + SQLITE_OVERLAP.format(extra='')
            + "END"
        )
        schema_editor.execute(
            "CREATE TRIGGER agreement_no_overlap_update "
            "BEFORE UPDATE OF user_id, store_id, active_from, active_to ON wholesaler_agreements BEGIN"
            + SQLITE_OVERLAP.format(extra='AND id != NEW.id')
            + "END"
        )


def drop_overlap_guard(apps, schema_editor):
    vendor = schema_editor.connection.vendor
    if vendor == 'postgresql':
        schema_editor.execute(
            'ALTER TABLE wholesaler_agreements DROP CONSTRAINT IF EXISTS agreement_no_overlap'
        )
    elif vendor == 'sqlite':
        schema_editor.execute('DROP TRIGGER IF EXISTS agreement_no_overlap_insert')
        schema_editor.execute('DROP TRIGGER IF EXISTS agreement_no_overlap_update')


class Migration(migrations.Migration):

    dependencies = [
        ('wholesalers', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(add_overlap_guard, drop_overlap_guard),
    ]
