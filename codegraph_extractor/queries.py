"""Tree-sitter query patterns shared by the JavaScript, TypeScript and TSX grammars.

Only node kinds present in all three grammars appear here. Class names are
matched with a wildcard because TypeScript uses ``type_identifier``.
"""

FUNCTION_QUERY = """
;; Named function declarations
(function_declaration
  name: (identifier) @name) @function

(generator_function_declaration
  name: (identifier) @name) @function

;; Arrow functions and function expressions assigned to variables
(variable_declarator
  name: (identifier) @name
  value: [(arrow_function) (function_expression)]) @function

;; Functions inside object literals
(pair
  key: (property_identifier) @name
  value: [(arrow_function) (function_expression)]) @function

;; Default-exported anonymous functions
(export_statement
  value: [(arrow_function) (function_expression)] @function)
"""

METHOD_QUERY = """
(method_definition
  name: [(property_identifier) (private_property_identifier)] @name) @method
"""

CLASS_QUERY = """
;; Class declarations
(class_declaration
  name: (_) @name) @class

;; Class expressions
(variable_declarator
  name: (identifier) @name
  value: (class)) @class
"""

VARIABLE_QUERY = """
(lexical_declaration
  (variable_declarator
    name: (identifier) @name)) @declaration

(variable_declaration
  (variable_declarator
    name: (identifier) @name)) @declaration
"""

IMPORT_QUERY = """
;; Default imports
(import_statement
  (import_clause
    (identifier) @name)
  source: (string) @source) @import_statement

;; Named imports without an alias
(import_statement
  (import_clause
    (named_imports
      (import_specifier
        name: (_) @name
        !alias)))
  source: (string) @source) @import_statement

;; Aliased named imports bind the alias
(import_statement
  (import_clause
    (named_imports
      (import_specifier
        alias: (identifier) @name)))
  source: (string) @source) @import_statement

;; Namespace imports
(import_statement
  (import_clause
    (namespace_import
      (identifier) @name))
  source: (string) @source) @import_statement

;; CommonJS require bound to a variable
(variable_declarator
  name: (identifier) @name
  value: (call_expression
    function: (identifier) @require
    arguments: (arguments
      (string) @source))
  (#eq? @require "require")) @import_statement
"""

CALL_QUERY = """
[
  (call_expression)
  (new_expression)
] @call
"""
