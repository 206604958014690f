from application.tag_watch.watcher import ListTags, TagWatcher

__all__ = ["ListTags", "TagWatcher"]
