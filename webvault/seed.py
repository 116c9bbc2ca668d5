"""Demo vault used for first runs and local development."""

WELCOME = """# Welcome to the Web Vault

This is a web-based vault editor that connects to your Google Drive to sync your markdown files.

## Features

- **Live preview** of your notes
- **Wikilinks** for connecting notes: [[Another Note]]
- **Google Drive sync** for cloud storage
- **Auto-save** functionality

## Getting Started

1. Connect your Google Drive account
2. Select a folder to use as your vault
3. Start editing your notes!

## Wikilinks

You can link to other notes using double brackets: [[Note Name]]

This creates connections between your notes."""

ANOTHER_NOTE = """# Another Note

This is another note in your vault.

## Backlinks

This note is linked from [[Welcome]].

## More Content

You can write anything here - thoughts, ideas, documentation, or any other content.

### Code Examples

```python
def hello():
    print("Hello, World!")
```

### Tasks

- [ ] Todo item
- [x] Completed item"""

DAILY_NOTE = """# Daily Note

Today's thoughts and tasks.

## Tasks
- [ ] Review project updates
- [ ] Update documentation
- [ ] Plan next features

## Notes

This is a note inside the Notes folder.

Connected to: [[Welcome]]"""


def seed_demo_vault(store):
    """Create the demo vault with a few linked notes and one folder."""
    vault = store.create_vault(name="Demo Vault", folder_id="demo-folder-id", is_connected=False)
    store.create_file(vault_id=vault.id, name="Welcome.md", path="/Welcome.md", content=WELCOME)
    store.create_file(vault_id=vault.id, name="Another Note.md", path="/Another Note.md",
                      content=ANOTHER_NOTE)
    folder = store.create_file(vault_id=vault.id, name="Notes", path="/Notes", is_folder=True)
    store.create_file(vault_id=vault.id, name="Daily Note.md", path="/Notes/Daily Note.md",
                      content=DAILY_NOTE, parent_id=folder.id)
    return vault
