import json
import unittest
from unittest.mock import patch

from sqlalchemy import event

from models import Submission
from scripts import migrate_photo_urls as script
from services.photo_migration import migrate_photo_urls, migrated_photo_urls
from support import add_submission, broken_db, make_session_factory


CURRENT = json.dumps([{"originalUrl": "x.jpg", "currentUrl": None, "order": 0}])


class MigratedPhotoUrlsTests(unittest.TestCase):
    def test_legacy_is_rewritten(self):
        self.assertEqual(
            json.loads(migrated_photo_urls('["a.jpg","b.jpg"]')),
            [
                {"originalUrl": "a.jpg", "currentUrl": None, "order": 0},
                {"originalUrl": "b.jpg", "currentUrl": None, "order": 1},
            ],
        )

    def test_skip_cases(self):
        for raw in (None, "[]", CURRENT, "{broken"):
            with self.subTest(raw=raw):
                self.assertIsNone(migrated_photo_urls(raw))


class MigratePhotoUrlsTests(unittest.TestCase):
    def setUp(self):
        self.Session = make_session_factory()
        self.db = self.Session()

    def tearDown(self):
        self.db.close()

    def photo_urls_of(self, submission_id):
        check = self.Session()
        try:
            return check.get(Submission, submission_id).photo_urls
        finally:
            check.close()

    def test_migrates_legacy_and_skips_the_rest(self):
        legacy = add_submission(self.db, minutes=1, photo_urls='["a.jpg","b.jpg"]')
        empty = add_submission(self.db, minutes=2, photo_urls="[]")
        current = add_submission(self.db, minutes=3, photo_urls=CURRENT)
        malformed = add_submission(self.db, minutes=4, photo_urls="{broken")
        add_submission(self.db, minutes=5, photo_urls=None)

        summary = migrate_photo_urls(self.db)

        self.assertEqual(summary.as_dict(), {"migrated": 1, "skipped": 3, "errored": 0})
        self.assertEqual(
            json.loads(self.photo_urls_of(legacy.id)),
            [
                {"originalUrl": "a.jpg", "currentUrl": None, "order": 0},
                {"originalUrl": "b.jpg", "currentUrl": None, "order": 1},
            ],
        )
        self.assertEqual(self.photo_urls_of(empty.id), "[]")
        self.assertEqual(self.photo_urls_of(current.id), CURRENT)
        self.assertEqual(self.photo_urls_of(malformed.id), "{broken")

    def test_second_run_is_a_no_op(self):
        first = add_submission(self.db, minutes=1, photo_urls='["a.jpg"]')
        second = add_submission(self.db, minutes=2, photo_urls='["b.jpg","c.jpg"]')

        migrate_photo_urls(self.db)
        after_first = (self.photo_urls_of(first.id), self.photo_urls_of(second.id))

        summary = migrate_photo_urls(self.db)
        self.assertEqual(summary.as_dict(), {"migrated": 0, "skipped": 2, "errored": 0})
        self.assertEqual((self.photo_urls_of(first.id), self.photo_urls_of(second.id)), after_first)

    def test_dry_run_does_not_write(self):
        legacy = add_submission(self.db, photo_urls='["a.jpg"]')

        summary = migrate_photo_urls(self.db, dry_run=True)

        self.assertEqual(summary.migrated, 1)
        self.assertEqual(self.photo_urls_of(legacy.id), '["a.jpg"]')

    def test_failed_record_does_not_stop_the_batch(self):
        bad = add_submission(self.db, minutes=1, photo_urls='["bad.jpg"]')
        good = add_submission(self.db, minutes=2, photo_urls='["good.jpg"]')
        bad_id = bad.id

        def refuse_bad_record(session, flush_context, instances):
            for obj in session.dirty:
                if isinstance(obj, Submission) and obj.id == bad_id:
                    raise RuntimeError("write refused")

        event.listen(self.db, "before_flush", refuse_bad_record)
        with self.assertLogs("services.photo_migration", level="ERROR"):
            summary = migrate_photo_urls(self.db)
        event.remove(self.db, "before_flush", refuse_bad_record)

        self.assertEqual(summary.as_dict(), {"migrated": 1, "skipped": 0, "errored": 1})
        self.assertEqual(self.photo_urls_of(bad_id), '["bad.jpg"]')
        self.assertIn("originalUrl", self.photo_urls_of(good.id))

    def test_row_deleted_mid_run_is_counted_as_error(self):
        bad = add_submission(self.db, minutes=1, photo_urls='["bad.jpg"]')
        gone = add_submission(self.db, minutes=2, photo_urls='["gone.jpg"]')
        good = add_submission(self.db, minutes=3, photo_urls='["good.jpg"]')
        bad_id, gone_id, good_id = bad.id, gone.id, good.id
        db = self.db

        def refuse_bad_record(session, flush_context, instances):
            for obj in session.dirty:
                if isinstance(obj, Submission) and obj.id == bad_id:
                    raise RuntimeError("write refused")

        def delete_then_upgrade(raw):
            if raw == '["bad.jpg"]':
                db.query(Submission).filter(Submission.id == gone_id).delete(
                    synchronize_session=False
                )
                db.commit()
            return migrated_photo_urls(raw)

        event.listen(self.db, "before_flush", refuse_bad_record)
        with patch("services.photo_migration.migrated_photo_urls", delete_then_upgrade), \
                self.assertLogs("services.photo_migration", level="ERROR") as captured:
            summary = migrate_photo_urls(self.db)
        event.remove(self.db, "before_flush", refuse_bad_record)

        self.assertEqual(summary.as_dict(), {"migrated": 1, "skipped": 0, "errored": 2})
        self.assertTrue(any(gone_id in line for line in captured.output))
        self.assertIn("originalUrl", self.photo_urls_of(good_id))


class MigrationScriptTests(unittest.TestCase):
    def test_main_reports_summary(self):
        Session = make_session_factory()
        db = Session()
        add_submission(db, photo_urls='["a.jpg"]')
        db.close()

        with patch.object(script, "SessionLocal", Session), \
                patch("builtins.print") as printed:
            exit_code = script.main([])

        self.assertEqual(exit_code, 0)
        output = "\n".join(str(call.args[0]) for call in printed.call_args_list)
        self.assertIn("Migrated: 1", output)
        self.assertIn("Errors:   0", output)

    def test_main_fails_when_batch_cannot_start(self):
        with patch.object(script, "SessionLocal", lambda: broken_db()), \
                self.assertLogs("scripts.migrate_photo_urls", level="ERROR"):
            exit_code = script.main([])

        self.assertEqual(exit_code, 1)


if __name__ == "__main__":
    unittest.main()
